# SPDX-License-Identifier: BSD-3-Clause

from typing import Iterable

from buildalert.buildlib import Build, EmailCategory, MissingTest
from buildalert.topics import ItemTopic, TopicName


class TestMissingTopic(ItemTopic[MissingTest]):
    """Tests that were expected but did not report a result."""

    topicName = TopicName.TEST_MISSING
    description = 'Missing Tests'
    category = EmailCategory.MISSING_TEST
    template = 'test_missing'

    def iterItems(self, build: Build) -> Iterable[MissingTest]:
        return build.missingTests

    def itemHasTopicSubject(self, build: Build, item: object) -> bool:
        return isinstance(item, MissingTest)
