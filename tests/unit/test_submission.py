# SPDX-License-Identifier: BSD-3-Clause

from io import StringIO
import json

from pytest import raises

from buildalert.buildlib import BuildTestStatus, DiagnosticType
from buildalert.submission import (
    loadBuilds, loadSubscribers, parseBuilds, parseSubscribers
)


submission = dict(builds=[
    dict(id=10, name='linux-gcc', project='Proj', diagnostics=[
        dict(type='error', text='undefined reference', sourceLine=5),
        ]),
    dict(id=11, name='linux-gcc', project='Proj', parentId=10, tests=[
        dict(name='test_io', status='failed', time=3),
        ], labels=['nightly']),
    ])

def testParseBuilds():
    build1, build2 = parseBuilds(submission)
    assert build1.id == 10
    assert build1.parent is None
    assert build1.diagnostics[0].type is DiagnosticType.ERROR
    assert build2.parent is build1
    assert build2.tests[0].status is BuildTestStatus.FAILED
    assert build2.tests[0].time == 3.0
    assert build2.labels == ['nightly']

def testLoadBuilds():
    builds = loadBuilds(StringIO(json.dumps(submission)))
    assert [build.getId() for build in builds] == [10, 11]

def testParentOrder():
    """Parents can be listed after their children."""

    child, parent = parseBuilds(dict(builds=[
        dict(id=2, name='child', parentId=1),
        dict(id=1, name='parent'),
        ]))
    assert child.parent is parent

def testDuplicateBuild():
    with raises(ValueError, match='Duplicate build ID 1'):
        parseBuilds(dict(builds=[
            dict(id=1, name='a'), dict(id=1, name='b')
            ]))

def testOwnParent():
    with raises(ValueError, match='Build 1 is its own parent'):
        parseBuilds(dict(builds=[dict(id=1, name='a', parentId=1)]))

def testUnknownParent():
    with raises(ValueError, match='Build 1 has unknown parent 7'):
        parseBuilds(dict(builds=[dict(id=1, name='a', parentId=7)]))

def testBadSubmission():
    with raises(ValueError, match='Expected object at top level'):
        parseBuilds([])
    with raises(ValueError, match="Missing 'builds' array"):
        parseBuilds({})
    with raises(ValueError, match="Expected 'builds' to be an array"):
        parseBuilds(dict(builds={}))
    with raises(ValueError, match=r"builds\[1\]: Missing values for fields"):
        parseBuilds(dict(builds=[dict(id=1, name='a'), dict(id=2)]))

def testParseSubscribers():
    subscriber1, subscriber2 = parseSubscribers(dict(subscribers=[
        dict(address='dev@example.com'),
        dict(address='qa@example.com', topics=['TestFailure'],
             labels=['nightly']),
        ]))
    assert subscriber1.getAddress() == 'dev@example.com'
    assert subscriber1.topics == []
    assert subscriber2.topics == ['TestFailure']
    assert subscriber2.getLabels() == {'nightly'}

def testLoadSubscribers():
    with raises(ValueError, match="Field 'name' does not exist"):
        loadSubscribers(StringIO('{"subscribers": [{"name": "dev"}]}'))
