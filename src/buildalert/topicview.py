# SPDX-License-Identifier: BSD-3-Clause

"""Presentation of topic chains as notification messages.

The templates returned by `Topic.getTemplate()` name the fragments that
make up a message; this module knows how to render each fragment.
"""

from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

import attr

from buildalert.buildlib import (
    Build, BuildConfigure, BuildDiagnostic, BuildTest, BuildUpdate,
    DynamicAnalysis, MissingTest
)
from buildalert.topics import ItemTopic, Topic, TopicItem, TopicName
from buildalert.utils import pluralize
import buildalert.config


@attr.s(auto_attribs=True)
class TopicSection:
    """The builds that a single topic of a chain will notify about."""

    topic: ItemTopic
    builds: List[Build]

    @property
    def count(self) -> int:
        topic = self.topic
        return sum(len(topic.getMatchedItems(build)) for build in self.builds)

def buildURL(build: Build) -> str:
    return f'{buildalert.config.rootURL}build/{build.id:d}'

def _formatDiagnostic(item: BuildDiagnostic) -> str:
    if item.sourceFile:
        return f'{item.sourceFile}:{item.sourceLine:d}: {item.text}'
    else:
        return item.text

def _formatConfigure(item: BuildConfigure) -> str:
    return f'Configure failed with status {item.status:d} ' \
           f'({item.errors:d} {pluralize("error", item.errors)}, ' \
           f'{item.warnings:d} {pluralize("warning", item.warnings)})'

def _formatDynamicAnalysis(item: DynamicAnalysis) -> str:
    return f'{item.name} ({item.checker}): {item.status}, ' \
           f'{item.defects:d} {pluralize("defect", item.defects)}'

def _formatTest(item: BuildTest) -> str:
    return f'{item.name} | {item.details}' if item.details else item.name

def _formatMissingTest(item: MissingTest) -> str:
    return item.name

def _formatUpdate(item: BuildUpdate) -> str:
    status = item.status or 'failed'
    return f'{item.command}: {status}' if item.command else status

_itemFormatters: Dict[str, Callable] = {
    'build_error': _formatDiagnostic,
    'build_warning': _formatDiagnostic,
    'configure': _formatConfigure,
    'dynamic_analysis': _formatDynamicAnalysis,
    'test_failure': _formatTest,
    'test_missing': _formatMissingTest,
    'update_error': _formatUpdate,
    }
"""Formatters for the items of each topic, by template name."""

_abbreviations = {
    TopicName.BUILD_ERROR.value: 'b',
    TopicName.BUILD_WARNING.value: 'w',
    TopicName.CONFIGURE.value: 'c',
    TopicName.DYNAMIC_ANALYSIS.value: 'd',
    TopicName.TEST_FAILURE.value: 't',
    TopicName.TEST_MISSING.value: 'm',
    TopicName.UPDATE_ERROR.value: 'u',
    }

def formatItem(template: str, item: object) -> str:
    formatter = _itemFormatters.get(template)
    return str(item) if formatter is None else formatter(item)

class TopicPresenter:
    """Creates the content of a notification message from a topic chain.

    Implements the presenter interface of `sendNotification()`.
    """

    def __init__(self, topic: Topic, sections: Sequence[TopicSection]):
        super().__init__()
        self.topic = topic
        self.sections = list(sections)

    @property
    def builds(self) -> List[Build]:
        """All builds this message is about, without duplicates."""
        builds: Dict[int, Build] = {}
        for section in self.sections:
            for build in section.builds:
                builds.setdefault(build.id, build)
        return list(builds.values())

    def _findSection(self, template: str) -> Optional[TopicSection]:
        for section in self.sections:
            if section.topic.template == template:
                return section
        return None

    @property
    def singleLineSummary(self) -> str:
        counts = ', '.join(
            f'{_abbreviations.get(section.topic.getTopicName(), "?")}='
            f'{section.count:d}'
            for section in self.sections
            )
        builds = self.builds
        projects = sorted({build.project for build in builds if build.project})
        names = ', '.join(build.name for build in builds)
        if projects:
            return f"FAILED ({counts}): {', '.join(projects)} - {names}"
        else:
            return f'FAILED ({counts}): {names}'

    def keyValue(self) -> Iterator[Tuple[Optional[str], str]]:
        """Generates key-value pairs which give an overview of the builds
        and issues this message is about.
        A key of None separates groups of related pairs.
        """
        for build in self.builds:
            yield 'build.name', build.name
            yield 'build.site', build.site
            yield 'build.stamp', build.stamp
            yield 'build.url', buildURL(build)
            yield None, ''
        for section in self.sections:
            topic = section.topic
            yield 'topic.name', topic.getTopicName()
            yield 'topic.summary', topic.getTopicDescription()
            yield 'topic.count', str(section.count)
            yield None, ''
        labels = self.topic.getLabels()
        if labels:
            yield 'labels', ', '.join(labels)
        fixed = self.topic.getFixed()
        if fixed:
            yield 'fixed', str(len(fixed))

    def iterSections(self) -> Iterator[Tuple[str, List[str]]]:
        """Yields a (heading, lines) pair for each fragment of the message,
        in the order of the topic chain's templates.
        """
        for template in self.topic.getTemplate():
            if template == 'labeled':
                labels = self.topic.getLabels()
                if labels:
                    yield 'Labels', [', '.join(labels)]
            elif template == 'fixed':
                fixed = self.topic.getFixed()
                if fixed:
                    yield 'Fixed', list(_iterFixed(fixed))
            else:
                section = self._findSection(template)
                if section is not None:
                    yield section.topic.getTopicDescription(), \
                          list(_iterSectionLines(template, section))

    def bodyLines(self) -> Iterator[str]:
        yield self.singleLineSummary
        for heading, lines in self.iterSections():
            yield ''
            yield f'*{heading}*'
            yield from lines

def _iterSectionLines(template: str, section: TopicSection) -> Iterator[str]:
    topic = section.topic
    for build in section.builds:
        yield f'{build.name} ({buildURL(build)})'
        for item in topic.getMatchedItems(build):
            yield '  ' + formatItem(template, item)

def _iterFixed(fixed: Sequence[TopicItem]) -> Iterator[str]:
    for entry in fixed:
        yield f'{entry.build.name}: {formatFixedItem(entry.item)}'

def formatFixedItem(item: object) -> str:
    if isinstance(item, BuildDiagnostic):
        return _formatDiagnostic(item)
    elif isinstance(item, BuildTest):
        return _formatTest(item)
    else:
        return str(item)
