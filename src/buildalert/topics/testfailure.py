# SPDX-License-Identifier: BSD-3-Clause

from typing import Iterable

from buildalert.buildlib import (
    Build, BuildTest, BuildTestStatus, EmailCategory
)
from buildalert.topics import Fixable, ItemTopic, TopicName


class TestFailureTopic(ItemTopic[BuildTest], Fixable):
    """Tests that ran and failed."""

    topicName = TopicName.TEST_FAILURE
    description = 'Failing Tests'
    category = EmailCategory.TEST
    template = 'test_failure'

    def iterItems(self, build: Build) -> Iterable[BuildTest]:
        return build.tests

    def itemHasTopicSubject(self, build: Build, item: object) -> bool:
        return isinstance(item, BuildTest) \
           and item.status is BuildTestStatus.FAILED

    def isResolved(self, build: Build, parentItem: BuildTest) -> bool:
        # A test that did not run, or was not reported at all, is not fixed.
        key = self.itemKey(parentItem)
        return any(
            test.key == key and test.status is BuildTestStatus.PASSED
            for test in build.tests
            )
