# SPDX-License-Identifier: BSD-3-Clause

"""Topics classify build events for the notification system.

A topic chain is a sequence of `Topic` objects in which each topic wraps
the next one (its inner topic). Builds are added to the outermost topic
and every topic in the chain gets to examine each build exactly once.
A topic keeps its own collection of the builds that match it.

Queries for a single value (name, description, count, topic collection)
are answered by the first topic in the chain that knows the answer;
queries for a list (labels, fixed issues, templates) combine the
contributions of every topic in the chain.

A chain is meant for one notification cycle: construct it, add the cycle's
builds, query it and discard it. It must not be shared between threads.
"""

from abc import ABC, abstractmethod
from enum import Enum
from functools import lru_cache
from inspect import isclass
from typing import (
    AbstractSet, Any, ClassVar, Dict, Generic, Hashable, Iterable, Iterator,
    List, Optional, Type, TypeVar, Union, cast
)
import logging

import attr

from buildalert.buildlib import Build, EmailCategory
from buildalert.collectionlib import BuildCollection, Collection
from buildalert.setcalc import uniqueOrdered
from buildalert.subscriberlib import SubscriberInterface
from buildalert.utils import IllegalStateError, iterModules


class TopicName(Enum):
    """The kinds of topics that exist."""

    BUILD_ERROR = 'BuildError'
    BUILD_WARNING = 'BuildWarning'
    CONFIGURE = 'Configure'
    DYNAMIC_ANALYSIS = 'DynamicAnalysis'
    LABELED = 'Labeled'
    TEST_FAILURE = 'TestFailure'
    TEST_MISSING = 'TestMissing'
    UPDATE_ERROR = 'UpdateError'

@attr.s(auto_attribs=True, frozen=True)
class TopicItem:
    """An item of a build that matched a topic, such as a compiler error
    or a failed test.
    """

    build: Build = attr.ib(eq=False)
    item: Any
    key: Hashable

T = TypeVar('T')

class Topic:
    """Base of all topics.

    On its own, a topic does not match any build: it only passes requests
    on to its inner topic, or answers with an empty value if it has none.
    """

    topicName: ClassVar[Optional[TopicName]] = None
    """Registered name for topics that can be created by name."""

    def __init__(self, topic: Optional['Topic'] = None):
        super().__init__()
        self.topic = topic
        self.subscriber: Optional[SubscriberInterface] = None
        self.__buildCollection: Optional[BuildCollection] = None

    def _fromInner(self, methodName: str, default: T, *args: object) -> T:
        """Returns the result of calling the given method on the inner
        topic, or the given default if this topic has no inner topic.
        """
        topic = self.topic
        if topic is None:
            return default
        return cast(T, getattr(topic, methodName)(*args))

    def __iter__(self) -> Iterator['Topic']:
        """Iterates through this topic and its inner topics,
        outermost first.
        """
        topic: Optional[Topic] = self
        while topic is not None:
            yield topic
            topic = topic.topic

    def addBuild(self, build: Build) -> 'Topic':
        """Offers a build to every topic in this chain.
        Each topic that the build matches will add it to its build
        collection.

        This is called on the outermost topic only; inner topics are
        reached through `setTopicData()` and `classifyBuild()`, so those
        are the methods to override, not this one.
        """
        self.setTopicData(build)
        self.classifyBuild(build)
        return self

    def classifyBuild(self, build: Build) -> None:
        """Adds the build to the build collection of every topic in this
        chain that it matches.
        Subclasses that override this must call the superclass method.
        """
        if self.buildHasTopicSubject(build):
            self.getBuildCollection().add(build)
        topic = self.topic
        if topic is not None:
            topic.classifyBuild(build)

    def setSubscriber(self, subscriber: SubscriberInterface) -> 'Topic':
        self.subscriber = subscriber
        topic = self.topic
        if topic is not None:
            topic.setSubscriber(subscriber)
        return self

    def setTopicData(self, build: Build) -> 'Topic':
        """Lets every topic in this chain gather what it needs from
        the given build before the build is classified.
        Subclasses that override this must call the superclass method.
        """
        topic = self.topic
        if topic is not None:
            topic.setTopicData(build)
        return self

    def buildHasTopicSubject(self, build: Build) -> bool:
        """Returns True iff the given build belongs in this topic's
        own build collection.
        """
        return False

    def itemHasTopicSubject(self, build: Build, item: object) -> bool:
        return self._fromInner('itemHasTopicSubject', False, build, item)

    def getTopicCollection(self) -> Optional[Collection[TopicItem]]:
        return self._fromInner('getTopicCollection', None)

    def getTopicName(self) -> str:
        return self._fromInner('getTopicName', '')

    def getTopicDescription(self) -> str:
        return self._fromInner('getTopicDescription', '')

    def getCategory(self) -> Optional[EmailCategory]:
        """Returns the notification category under which sending
        a notification about this topic is recorded.
        """
        return self._fromInner('getCategory', None)

    def getBuildCollection(self) -> BuildCollection:
        collection = self.__buildCollection
        if collection is None:
            collection = self.__buildCollection = BuildCollection()
        return collection

    def getLabels(self) -> List[str]:
        return self._fromInner('getLabels', [])

    def getTopicCount(self) -> int:
        return self._fromInner('getTopicCount', 0)

    def hasSubscriberAlreadyBeenNotified(
            self,
            build: Build,
            category: Optional[EmailCategory] = None
            ) -> bool:
        """Returns True iff the build's notification history shows that
        the subscriber was notified about it, under the given category
        if one is provided.
        Raises IllegalStateError if no subscriber has been set.
        """
        subscriber = self.subscriber
        if subscriber is None:
            raise IllegalStateError('No subscriber has been set')
        collection = build.getBuildEmailCollection()
        if category is not None:
            collection = collection.sortByCategory().get(category)
        return collection is not None and collection.has(
            subscriber.getAddress()
            )

    def getFixed(self) -> List[TopicItem]:
        return self._fromInner('getFixed', [])

    def getTemplate(self) -> List[str]:
        return self._fromInner('getTemplate', [])

class Fixable(ABC):
    """Capability of a topic to report issues that were present in
    a build's parent but have been resolved in the build itself.
    """

    @abstractmethod
    def getFixed(self) -> List[TopicItem]:
        raise NotImplementedError

class Labelable(ABC):
    """Capability of a topic to report the labels of the builds
    it matched.
    """

    @abstractmethod
    def getLabels(self) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    def setLabels(self, labels: Iterable[str]) -> None:
        """Restricts the labels that this topic is interested in."""
        raise NotImplementedError

ItemT = TypeVar('ItemT')

class ItemTopic(Topic, Generic[ItemT]):
    """A topic that matches builds by looking at the individual items,
    such as compiler diagnostics or test results, associated with a build.

    Subclasses provide the items and the predicate on an item; a build
    matches if at least one of its items does.
    The matched items are collected in the topic collection.
    """

    description: ClassVar[str]
    category: ClassVar[Optional[EmailCategory]] = None
    template: ClassVar[str]

    def __init__(self, topic: Optional[Topic] = None):
        super().__init__(topic)
        self.__topicCollection: Collection[TopicItem] = \
                Collection(lambda entry: entry.key)
        self.__fixed: Collection[TopicItem] = \
                Collection(lambda entry: entry.key)
        self.__matches: Dict[int, List[ItemT]] = {}

    def iterItems(self, build: Build) -> Iterable[ItemT]:
        """Yields the items of the given build that this topic examines."""
        raise NotImplementedError

    def itemKey(self, item: ItemT) -> Hashable:
        """Returns the identity of an item: items of different builds
        that have the same key are considered equivalent.
        """
        return cast(Hashable, getattr(item, 'key'))

    def matchItems(self, build: Build) -> List[ItemT]:
        """Returns the items of the given build that match this topic.
        If the build's data cannot be examined, nothing matches.
        """
        try:
            return [
                item
                for item in self.iterItems(build)
                if self.itemHasTopicSubject(build, item)
                ]
        except (AttributeError, LookupError, TypeError, ValueError) as ex:
            logging.warning(
                'Unable to examine build %s for topic %s: %s',
                getattr(build, 'id', '?'), self.getTopicName(), ex
                )
            return []

    def getMatchedItems(self, build: Build) -> List[ItemT]:
        """Returns the items of the given build that matched this topic
        when the build was added.
        """
        return list(self.__matches.get(build.id, ()))

    def setTopicData(self, build: Build) -> Topic:
        matched = self.matchItems(build)
        self.__matches[build.id] = matched
        collection = self.__topicCollection
        for item in matched:
            collection.add(TopicItem(build, item, (build.id, self.itemKey(item))))
        if isinstance(self, Fixable):
            self.__collectFixed(build)
        return super().setTopicData(build)

    def isResolved(self, build: Build, parentItem: ItemT) -> bool:
        """Returns True iff an item that matched this topic in the parent
        of the given build no longer occurs in the build itself.
        Topics for which the absence of an item does not prove that
        the issue was resolved must override this.
        """
        key = self.itemKey(parentItem)
        return all(
            self.itemKey(item) != key
            for item in self.getMatchedItems(build)
            )

    def __collectFixed(self, build: Build) -> None:
        parent = build.parent
        if parent is None:
            return
        fixed = self.__fixed
        for item in self.matchItems(parent):
            try:
                resolved = self.isResolved(build, item)
            except (AttributeError, LookupError, TypeError, ValueError) as ex:
                logging.warning(
                    'Unable to compare build %s to its parent '
                    'for topic %s: %s',
                    build.id, self.getTopicName(), ex
                    )
                return
            if resolved:
                key = (build.id, self.itemKey(item))
                fixed.add(TopicItem(build, item, key))

    def buildHasTopicSubject(self, build: Build) -> bool:
        return bool(self.__matches.get(build.id))

    def getTopicCollection(self) -> Collection[TopicItem]:
        return self.__topicCollection

    def getTopicName(self) -> str:
        # Topic classes are named after their topic, followed by 'Topic'.
        name = self.__class__.__name__
        return name[:-len('Topic')] if name.endswith('Topic') else name

    def getTopicDescription(self) -> str:
        return self.description

    def getCategory(self) -> Optional[EmailCategory]:
        return self.category

    def getTopicCount(self) -> int:
        return len(self.__topicCollection)

    def getFixed(self) -> List[TopicItem]:
        return self.__fixed.toList() + super().getFixed()

    def getTemplate(self) -> List[str]:
        templates = [self.template]
        if self.__fixed:
            templates.append('fixed')
        return uniqueOrdered(templates + super().getTemplate())

@lru_cache(maxsize=None)
def topicClasses() -> Dict[TopicName, Type[Topic]]:
    """Returns the topic classes in this package, by name."""

    log = logging.getLogger()
    classes: Dict[TopicName, Type[Topic]] = {}
    for _, module in iterModules(__name__, log):
        for obj in vars(module).values():
            if isclass(obj) and issubclass(obj, Topic) \
                    and obj.__module__ == module.__name__ \
                    and obj.topicName is not None:
                classes[obj.topicName] = obj
    for name in TopicName:
        if name not in classes:
            log.error('No implementation found for topic "%s"', name.value)
    return classes

def createTopicChain(
        names: Iterable[Union[str, TopicName]],
        topic: Optional[Topic] = None,
        labels: Optional[AbstractSet[str]] = None
        ) -> Topic:
    """Creates a chain of topics from the given names, outermost first.
    If `topic` is given, it becomes the innermost topic of the new chain.
    If `labels` is given, labeled topics in the chain only match those
    labels.
    Raises KeyError if a name does not match any known topic.
    """

    classes = topicClasses()
    chainClasses = []
    for name in names:
        try:
            topicName = name if isinstance(name, TopicName) else TopicName(name)
            chainClasses.append(classes[topicName])
        except (KeyError, ValueError):
            raise KeyError(f'Unknown topic "{name}"') from None

    for cls in reversed(chainClasses):
        topic = cls(topic)
        if labels is not None and isinstance(topic, Labelable):
            topic.setLabels(labels)
    return Topic() if topic is None else topic
