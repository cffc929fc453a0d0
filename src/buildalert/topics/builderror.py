# SPDX-License-Identifier: BSD-3-Clause

from typing import Iterable

from buildalert.buildlib import (
    Build, BuildDiagnostic, DiagnosticType, EmailCategory
)
from buildalert.topics import Fixable, ItemTopic, TopicName


class BuildErrorTopic(ItemTopic[BuildDiagnostic], Fixable):
    """Errors reported by the compiler."""

    topicName = TopicName.BUILD_ERROR
    description = 'Errors'
    category = EmailCategory.ERROR
    template = 'build_error'
    diagnosticType = DiagnosticType.ERROR

    def iterItems(self, build: Build) -> Iterable[BuildDiagnostic]:
        return build.diagnostics

    def itemHasTopicSubject(self, build: Build, item: object) -> bool:
        return isinstance(item, BuildDiagnostic) \
           and item.type is self.diagnosticType
