# SPDX-License-Identifier: BSD-3-Clause

from typing import Iterable

from buildalert.buildlib import Build, DynamicAnalysis, EmailCategory
from buildalert.topics import ItemTopic, TopicName


class DynamicAnalysisTopic(ItemTopic[DynamicAnalysis]):
    """Tests in which a dynamic analysis checker found defects."""

    topicName = TopicName.DYNAMIC_ANALYSIS
    description = 'Dynamic analysis tests failing'
    category = EmailCategory.DYNAMIC_ANALYSIS
    template = 'dynamic_analysis'

    def iterItems(self, build: Build) -> Iterable[DynamicAnalysis]:
        return build.dynamicAnalyses

    def itemHasTopicSubject(self, build: Build, item: object) -> bool:
        return isinstance(item, DynamicAnalysis) and (
            item.status.lower() == 'failed' or item.defects > 0
            )
