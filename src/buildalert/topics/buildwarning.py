# SPDX-License-Identifier: BSD-3-Clause

from buildalert.buildlib import DiagnosticType, EmailCategory
from buildalert.topics import TopicName
from buildalert.topics.builderror import BuildErrorTopic


class BuildWarningTopic(BuildErrorTopic):
    """Warnings reported by the compiler."""

    topicName = TopicName.BUILD_WARNING
    description = 'Warnings'
    category = EmailCategory.WARNING
    template = 'build_warning'
    diagnosticType = DiagnosticType.WARNING
