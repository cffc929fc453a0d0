# SPDX-License-Identifier: BSD-3-Clause

from buildalert.buildlib import EmailCategory
from buildalert.collectionlib import (
    BuildCollection, BuildEmailCollection, Collection
)
from buildalert.setcalc import categorizedLists, uniqueOrdered

from buildgeneratorlib import email


def testCollectionKeepsFirst():
    """Adding an item under an existing key keeps the first item."""

    collection = Collection(str.lower)
    assert collection.add('Alpha')
    assert collection.add('beta')
    assert not collection.add('ALPHA')
    assert collection.toList() == ['Alpha', 'beta']
    assert collection.keys() == ['alpha', 'beta']
    assert collection.get('alpha') == 'Alpha'
    assert collection.get('gamma') is None
    assert collection.has('beta')
    assert 'BETA' in collection
    assert collection.size == len(collection) == 2

def testCollectionContainsForeign():
    """Objects the key function cannot handle are not contained."""

    collection = BuildCollection()
    assert 'build1' not in collection
    assert None not in collection

def testBuildCollection(gen):
    build1 = gen.createBuild()
    build2 = gen.createBuild()
    collection = BuildCollection()
    collection.add(build2)
    collection.add(build1)
    collection.add(build2)
    assert collection.toList() == [build2, build1]
    assert list(collection) == [build2, build1]
    assert collection.keys() == [build2.id, build1.id]

def testAddAll(gen):
    builds = [gen.createBuild() for _ in range(3)]
    first = BuildCollection()
    first.add(builds[0])
    first.add(builds[1])
    second = BuildCollection()
    second.add(builds[1])
    second.add(builds[2])
    first.addAll(second)
    assert first.toList() == builds

def testEmailCollection(gen):
    build = gen.createBuild(emails=[
        email('dev@example.com', EmailCategory.ERROR),
        email('qa@example.com', EmailCategory.TEST),
        email('dev@example.com', EmailCategory.TEST),
        ])
    collection = build.getBuildEmailCollection()
    assert collection.keys() == ['dev@example.com', 'qa@example.com']

    byCategory = collection.sortByCategory()
    assert set(byCategory) == {EmailCategory.ERROR, EmailCategory.TEST}
    assert byCategory[EmailCategory.ERROR].keys() == ['dev@example.com']
    assert byCategory[EmailCategory.TEST].keys() == [
        'qa@example.com', 'dev@example.com'
        ]

def testEmptyEmailCollection():
    collection = BuildEmailCollection()
    assert len(collection) == 0
    assert collection.sortByCategory() == {}

def testAddBuildEmail(gen):
    build = gen.createBuild()
    build.addBuildEmail(email('dev@example.com', EmailCategory.UPDATE))
    assert build.getBuildEmailCollection().has('dev@example.com')

def testUniqueOrdered():
    assert uniqueOrdered([]) == []
    assert uniqueOrdered(['b', 'a', 'b', 'c', 'a']) == ['b', 'a', 'c']

def testCategorizedLists():
    lists = categorizedLists([(1, 'a'), (2, 'b'), (1, 'c')])
    assert lists == {1: ['a', 'c'], 2: ['b']}
    assert lists[3] == []
