# SPDX-License-Identifier: BSD-3-Clause

from collections import defaultdict
from typing import DefaultDict, Iterable, List, Tuple, TypeVar

KT = TypeVar('KT')
VT = TypeVar('VT')

def uniqueOrdered(seq: Iterable[VT]) -> List[VT]:
    '''Returns the elements of the given sequence in their original order,
    with later occurrences of an element already seen dropped.
    Elements must be usable as dictionary keys.
    '''
    return list(dict.fromkeys(seq))

def categorizedLists(
        pairs: Iterable[Tuple[KT, VT]]
        ) -> DefaultDict[KT, List[VT]]:
    '''When given a series of (category, value) pairs, returns a defaultdict
    that has the given categories as the keys and lists containing the
    corresponding values in the same order as in the input.
    The returned defaultdict returns a new empty list if a non-existing key
    is looked up.
    '''
    valuesByCategory: DefaultDict[KT, List[VT]] = defaultdict(list)
    for category, value in pairs:
        valuesByCategory[category].append(value)
    return valuesByCategory
