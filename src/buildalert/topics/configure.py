# SPDX-License-Identifier: BSD-3-Clause

from typing import Iterable

from buildalert.buildlib import Build, BuildConfigure, EmailCategory
from buildalert.topics import ItemTopic, TopicName


class ConfigureTopic(ItemTopic[BuildConfigure]):
    """Failure to configure the build."""

    topicName = TopicName.CONFIGURE
    description = 'Configure Errors'
    category = EmailCategory.CONFIGURE
    template = 'configure'

    def iterItems(self, build: Build) -> Iterable[BuildConfigure]:
        configure = build.configure
        return () if configure is None else (configure, )

    def itemHasTopicSubject(self, build: Build, item: object) -> bool:
        if not isinstance(item, BuildConfigure):
            return False
        # A non-zero exit status is a failure even without error messages.
        return item.status != 0 or item.errors > 0
