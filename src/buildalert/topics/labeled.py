# SPDX-License-Identifier: BSD-3-Clause

from typing import AbstractSet, Dict, Iterable, List, Optional
import logging

from buildalert.buildlib import Build
from buildalert.collectionlib import Collection
from buildalert.setcalc import uniqueOrdered
from buildalert.subscriberlib import LabelSubscriber
from buildalert.topics import Labelable, Topic, TopicName


class LabeledTopic(Topic, Labelable):
    """Builds that carry labels of interest.

    This topic decorates its inner topic: it contributes its name,
    labels and template, but count, collection and category are those of
    the inner topic.

    The labels of interest are the ones set explicitly, or if none were
    set, the labels of the subscriber. If neither provides labels,
    any label is of interest.
    """

    topicName = TopicName.LABELED

    def __init__(self,
                 topic: Optional[Topic] = None,
                 labels: Optional[Iterable[str]] = None
                 ):
        super().__init__(topic)
        self.__filter: Optional[AbstractSet[str]] = \
                None if labels is None else frozenset(labels)
        self.__labels: Collection[str] = Collection(lambda label: label)
        self.__matches: Dict[int, List[str]] = {}

    def setLabels(self, labels: Iterable[str]) -> None:
        self.__filter = frozenset(labels)

    def getLabelFilter(self) -> Optional[AbstractSet[str]]:
        """Returns the labels this topic is interested in,
        or None if it accepts any label.
        """
        labelFilter = self.__filter
        if labelFilter is None:
            subscriber = self.subscriber
            if isinstance(subscriber, LabelSubscriber):
                labelFilter = subscriber.getLabels() or None
        return labelFilter

    def setTopicData(self, build: Build) -> Topic:
        try:
            matched = [
                label
                for label in build.labels
                if self.itemHasTopicSubject(build, label)
                ]
        except (AttributeError, TypeError) as ex:
            logging.warning(
                'Unable to examine labels of build %s: %s',
                getattr(build, 'id', '?'), ex
                )
            matched = []
        self.__matches[build.id] = matched
        for label in matched:
            self.__labels.add(label)
        return super().setTopicData(build)

    def buildHasTopicSubject(self, build: Build) -> bool:
        return bool(self.__matches.get(build.id))

    def itemHasTopicSubject(self, build: Build, item: object) -> bool:
        if not isinstance(item, str):
            return False
        labelFilter = self.getLabelFilter()
        return labelFilter is None or item in labelFilter

    def getTopicName(self) -> str:
        return TopicName.LABELED.value

    def getTopicDescription(self) -> str:
        description = super().getTopicDescription()
        labels = self.__labels.toList()
        if not description:
            return 'Labeled builds'
        elif labels:
            return f"{description} ({', '.join(labels)})"
        else:
            return description

    def getLabels(self) -> List[str]:
        return uniqueOrdered(self.__labels.toList() + super().getLabels())

    def getTemplate(self) -> List[str]:
        return uniqueOrdered(['labeled'] + super().getTemplate())
