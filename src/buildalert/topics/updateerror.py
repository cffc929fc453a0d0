# SPDX-License-Identifier: BSD-3-Clause

from typing import Iterable

from buildalert.buildlib import Build, BuildUpdate, EmailCategory
from buildalert.topics import ItemTopic, TopicName


class UpdateErrorTopic(ItemTopic[BuildUpdate]):
    """Failure to update the source tree before building."""

    topicName = TopicName.UPDATE_ERROR
    description = 'Update Errors'
    category = EmailCategory.UPDATE
    template = 'update_error'

    def iterItems(self, build: Build) -> Iterable[BuildUpdate]:
        update = build.update
        return () if update is None else (update, )

    def itemHasTopicSubject(self, build: Build, item: object) -> bool:
        return isinstance(item, BuildUpdate) \
           and (bool(item.status) or item.errors > 0)
