# SPDX-License-Identifier: BSD-3-Clause

from typing import AbstractSet, List

from typing_extensions import Protocol, runtime_checkable
import attr


@runtime_checkable
class SubscriberInterface(Protocol):
    """Someone who can be notified, identified by an address."""

    def getAddress(self) -> str:
        ...

@runtime_checkable
class LabelSubscriber(SubscriberInterface, Protocol):
    """Subscriber that is only interested in builds with certain labels."""

    def getLabels(self) -> AbstractSet[str]:
        ...

@attr.s(auto_attribs=True)
class Subscriber:
    """A recipient of build notifications.

    The topics list contains the names of the topics this subscriber wants
    to be notified about, outermost first; see `createTopicChain()`.
    If labels are given, only builds carrying at least one of those labels
    are of interest.
    """

    address: str
    topics: List[str] = attr.ib(factory=list)
    labels: List[str] = attr.ib(factory=list)

    def getAddress(self) -> str:
        return self.address

    def getLabels(self) -> AbstractSet[str]:
        return frozenset(self.labels)
