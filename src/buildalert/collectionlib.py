# SPDX-License-Identifier: BSD-3-Clause

"""Ordered containers in which every element has a unique key."""

from typing import (
    TYPE_CHECKING, Callable, Dict, Generic, Hashable, Iterator, List,
    Optional, TypeVar
)

from buildalert.setcalc import categorizedLists

if TYPE_CHECKING:
    # pylint: disable=cyclic-import
    from buildalert.buildlib import Build, BuildEmail, EmailCategory
else:
    Build = object
    BuildEmail = object
    EmailCategory = object


T = TypeVar('T')

class Collection(Generic[T]):
    """An insertion ordered set of items, in which items are identified
    by a key derived from the item.

    Adding an item with a key that is already present does not change
    the collection: the first item added under a key is kept.
    """

    def __init__(self, keyFunc: Callable[[T], Hashable]):
        super().__init__()
        self.__keyFunc = keyFunc
        self.__items: Dict[Hashable, T] = {}

    def __len__(self) -> int:
        return len(self.__items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.__items.values())

    def __contains__(self, item: object) -> bool:
        try:
            key = self.__keyFunc(item) # type: ignore[arg-type]
        except AttributeError:
            return False
        return key in self.__items

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({list(self.__items.values())!r})'

    def add(self, item: T) -> bool:
        """Adds an item to this collection.
        Returns True if the item was added, False if an item with the same
        key was already present.
        """
        key = self.__keyFunc(item)
        items = self.__items
        if key in items:
            return False
        items[key] = item
        return True

    def addAll(self, items: 'Collection[T]') -> None:
        for item in items:
            self.add(item)

    def has(self, key: Hashable) -> bool:
        return key in self.__items

    def get(self, key: Hashable) -> Optional[T]:
        return self.__items.get(key)

    def keys(self) -> List[Hashable]:
        return list(self.__items)

    def toList(self) -> List[T]:
        return list(self.__items.values())

    @property
    def size(self) -> int:
        return len(self.__items)

def _buildKey(build: Build) -> int:
    return build.id

class BuildCollection(Collection[Build]):
    """Builds, keyed by build ID."""

    def __init__(self) -> None:
        super().__init__(_buildKey)

def _emailKey(email: BuildEmail) -> str:
    return email.address

class BuildEmailCollection(Collection[BuildEmail]):
    """Notification history of a build, keyed by recipient address."""

    def __init__(self) -> None:
        super().__init__(_emailKey)
        self.__emails: List[BuildEmail] = []

    def add(self, item: BuildEmail) -> bool:
        # Every record is kept for categorization, even if the address
        # was already notified under another category.
        self.__emails.append(item)
        return super().add(item)

    def sortByCategory(self) -> Dict[EmailCategory, 'BuildEmailCollection']:
        """Returns a dictionary that maps each category present in this
        history to the notifications sent under that category.
        """
        sortedEmails: Dict[EmailCategory, BuildEmailCollection] = {}
        for category, emails in categorizedLists(
                (email.category, email) for email in self.__emails
                ).items():
            collection = BuildEmailCollection()
            for email in emails:
                collection.add(email)
            sortedEmails[category] = collection
        return sortedEmails
