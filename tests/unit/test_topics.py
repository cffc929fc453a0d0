# SPDX-License-Identifier: BSD-3-Clause

"""Tests for the topic chain engine."""

import logging

from pytest import mark, raises

from buildalert.buildlib import BuildTestStatus, EmailCategory
from buildalert.subscriberlib import Subscriber
from buildalert.topics import (
    Fixable, ItemTopic, Labelable, Topic, TopicName, createTopicChain,
    testfailure, topicClasses
)
from buildalert.topics.builderror import BuildErrorTopic
from buildalert.topics.buildwarning import BuildWarningTopic
from buildalert.topics.labeled import LabeledTopic
from buildalert.utils import IllegalStateError

from buildgeneratorlib import buildTest, email, error, warning


def testLeafDefaults():
    """A topic without an inner topic answers with empty values."""

    topic = Topic()
    assert topic.getTopicCount() == 0
    assert topic.getLabels() == []
    assert topic.getFixed() == []
    assert topic.getTemplate() == []
    assert topic.getTopicName() == ''
    assert topic.getTopicDescription() == ''
    assert topic.getTopicCollection() is None
    assert topic.getCategory() is None
    assert len(topic.getBuildCollection()) == 0

def testBaseDelegates(gen):
    """A plain topic answers queries on behalf of its inner topic."""

    topic = Topic(BuildErrorTopic())
    build = gen.withErrors(2)
    topic.addBuild(build)
    assert topic.getTopicName() == 'BuildError'
    assert topic.getTopicDescription() == 'Errors'
    assert topic.getTopicCount() == 2
    assert topic.getCategory() is EmailCategory.ERROR
    assert topic.itemHasTopicSubject(build, build.diagnostics[0])
    # The plain topic does not match builds itself.
    assert len(topic.getBuildCollection()) == 0
    assert build.id in topic.topic.getBuildCollection().keys()

def testAddBuildTwice(gen):
    """A build that is added twice is collected once."""

    topic = BuildErrorTopic()
    build = gen.withErrors(3)
    topic.addBuild(build).addBuild(build)
    assert topic.getBuildCollection().size == 1
    assert topic.getTopicCount() == 3

def testAddBuildFluent(gen):
    """addBuild() returns the topic it was called on."""

    topic = BuildErrorTopic()
    build1 = gen.withErrors(1)
    build2 = gen.withErrors(1)
    assert topic.addBuild(build1).addBuild(build2) is topic
    assert topic.getBuildCollection().toList() == [build1, build2]

@mark.parametrize('depth', [1, 2, 5])
def testNoMatch(gen, depth):
    """A build that matches no topic leaves all collections empty."""

    topic = Topic()
    for _ in range(depth):
        topic = BuildErrorTopic(BuildWarningTopic(topic))
    build = gen.createBuild()
    topic.addBuild(build)
    for node in topic:
        assert len(node.getBuildCollection()) == 0
        assert node.getTopicCount() == 0

def testErrorWarningChain(gen):
    """Each topic in a chain only collects the builds that match it."""

    chain = BuildErrorTopic(BuildWarningTopic(Topic()))
    build = gen.withErrors(2)
    chain.addBuild(build)

    warnings = chain.topic
    base = warnings.topic
    assert build in chain.getBuildCollection()
    assert build not in warnings.getBuildCollection()
    assert build not in base.getBuildCollection()
    assert chain.getTopicCount() == 2
    assert warnings.getTopicCount() == 0

    warned = gen.createBuild(diagnostics=[warning('unused variable')])
    chain.addBuild(warned)
    assert warned not in chain.getBuildCollection()
    assert warned in warnings.getBuildCollection()

class RecordingTopic(Topic):
    """Remembers the builds it was asked to classify."""

    def __init__(self, topic=None):
        super().__init__(topic)
        self.classified = []

    def classifyBuild(self, build):
        super().classifyBuild(build)
        self.classified.append(build)

def testClassifyOverride(gen):
    """Builds added to the outer topic reach classifyBuild() of every
    topic in the chain, including overrides in inner topics.
    """

    recorder = RecordingTopic(BuildWarningTopic())
    chain = BuildErrorTopic(recorder)
    build = gen.withErrors(1)
    chain.addBuild(build)
    assert recorder.classified == [build]
    assert build in chain.getBuildCollection()
    assert build not in chain.topic.topic.getBuildCollection()

def testSetSubscriberCascades(subscriber):
    """Every topic in a chain gets the same subscriber."""

    chain = LabeledTopic(BuildErrorTopic(Topic()))
    assert chain.setSubscriber(subscriber) is chain
    assert [node.subscriber for node in chain] == [subscriber] * 3

def testAlreadyNotified(gen, subscriber):
    """The notification history of a build is checked for the subscriber's
    address, optionally narrowed to a category.
    """

    build = gen.createBuild(emails=[
        email('dev@example.com', EmailCategory.ERROR),
        email('qa@example.com', EmailCategory.TEST),
        ])
    topic = BuildErrorTopic().setSubscriber(subscriber)
    assert topic.hasSubscriberAlreadyBeenNotified(build)
    assert topic.hasSubscriberAlreadyBeenNotified(build, EmailCategory.ERROR)
    assert not topic.hasSubscriberAlreadyBeenNotified(
        build, EmailCategory.TEST
        )
    assert not topic.hasSubscriberAlreadyBeenNotified(
        build, EmailCategory.UPDATE
        )

    other = BuildErrorTopic().setSubscriber(Subscriber('ops@example.com'))
    assert not other.hasSubscriberAlreadyBeenNotified(build)

def testNotifiedWithoutHistory(gen, subscriber):
    topic = Topic().setSubscriber(subscriber)
    assert not topic.hasSubscriberAlreadyBeenNotified(gen.createBuild())

def testNotifiedWithoutSubscriber(gen):
    """Checking the history without a subscriber is an error."""

    topic = BuildErrorTopic()
    with raises(IllegalStateError):
        topic.hasSubscriberAlreadyBeenNotified(gen.createBuild())

def testMalformedBuild(gen, caplog):
    """A build that one topic cannot examine is still offered to
    the other topics in the chain.
    """

    chain = BuildErrorTopic(testfailure.TestFailureTopic())
    build = gen.withTests(failed=['crash'])
    build.diagnostics = None
    with caplog.at_level(logging.WARNING):
        chain.addBuild(build)
    assert build not in chain.getBuildCollection()
    assert build in chain.topic.getBuildCollection()
    assert 'Unable to examine build' in caplog.text

def testTopicCollection(gen):
    """The topic collection contains the matched items of every build."""

    topic = BuildErrorTopic()
    build1 = gen.withErrors(2)
    build2 = gen.withErrors(1)
    topic.addBuild(build1).addBuild(build2)
    collection = topic.getTopicCollection()
    assert [entry.item for entry in collection] \
        == build1.diagnostics + build2.diagnostics
    assert [entry.build for entry in collection] == [build1, build1, build2]
    assert topic.getMatchedItems(build1) == build1.diagnostics
    assert topic.getMatchedItems(gen.createBuild()) == []

def testFixed(gen):
    """Errors of the parent build that are gone are reported as fixed."""

    parent = gen.withErrors(3)
    build = gen.createBuild(parent=parent)
    topic = BuildErrorTopic()
    topic.addBuild(build)
    assert build not in topic.getBuildCollection()
    fixed = topic.getFixed()
    assert [entry.item for entry in fixed] == parent.diagnostics
    assert all(entry.build is build for entry in fixed)
    assert topic.getTemplate() == ['build_error', 'fixed']

def testPartiallyFixed(gen):
    parent = gen.createBuild(diagnostics=[
        error('first', line=10), error('second', line=20)
        ])
    build = gen.createBuild(parent=parent, diagnostics=[
        error('first', line=10), error('third', line=30)
        ])
    topic = BuildErrorTopic()
    topic.addBuild(build)
    assert [entry.item.text for entry in topic.getFixed()] == ['second']
    assert topic.getTopicCount() == 2

def testFixedWithoutParent(gen):
    topic = BuildErrorTopic()
    topic.addBuild(gen.createBuild())
    assert topic.getFixed() == []
    assert topic.getTemplate() == ['build_error']

def testFixedChain(gen):
    """Fixed issues of all topics in a chain are combined."""

    parent = gen.createBuild(
        diagnostics=[error('broken')],
        tests=[buildTest('flaky', BuildTestStatus.FAILED)]
        )
    build = gen.createBuild(parent=parent, tests=[buildTest('flaky')])
    chain = BuildErrorTopic(testfailure.TestFailureTopic())
    chain.addBuild(build)
    assert [entry.item.key for entry in chain.getFixed()] == [
        parent.diagnostics[0].key, 'flaky'
        ]

def testLabeledScenario(gen):
    """Labels shared by several builds are reported once."""

    topic = LabeledTopic()
    build1 = gen.createBuild(labels=['flaky'])
    build2 = gen.createBuild(labels=['flaky'])
    topic.addBuild(build1).addBuild(build2)
    assert topic.getLabels() == ['flaky']
    assert topic.getBuildCollection().toList() == [build1, build2]
    assert topic.getTopicName() == 'Labeled'

def testLabeledFilter(gen):
    """Only labels of interest are matched."""

    topic = LabeledTopic(labels=['nightly'])
    build1 = gen.createBuild(labels=['flaky'])
    build2 = gen.createBuild(labels=['flaky', 'nightly'])
    topic.addBuild(build1).addBuild(build2)
    assert topic.getLabels() == ['nightly']
    assert topic.getBuildCollection().toList() == [build2]

    topic.setLabels(['flaky'])
    build3 = gen.createBuild(labels=['flaky'])
    topic.addBuild(build3)
    assert build3 in topic.getBuildCollection()

def testLabeledSubscriberFilter(gen):
    """Without explicit labels, the subscriber's labels are used."""

    topic = LabeledTopic()
    topic.setSubscriber(Subscriber('dev@example.com', labels=['gpu']))
    build = gen.createBuild(labels=['cpu', 'gpu'])
    topic.addBuild(build)
    assert topic.getLabels() == ['gpu']
    assert not topic.itemHasTopicSubject(build, 'cpu')

def testLabeledDecorates(gen):
    """A labeled topic adds labels to its inner topic's data."""

    chain = LabeledTopic(BuildErrorTopic())
    build = gen.withErrors(2, labels=['flaky'])
    chain.addBuild(build)
    assert chain.getTopicName() == 'Labeled'
    assert chain.getTopicCount() == 2
    assert chain.getTopicDescription() == 'Errors (flaky)'
    assert chain.getCategory() is EmailCategory.ERROR
    assert chain.getTemplate() == ['labeled', 'build_error']
    assert chain.getLabels() == ['flaky']
    assert isinstance(chain, Labelable)
    assert isinstance(chain.topic, Fixable)

def testTopicNames():
    """Every topic name has an implementation that is named after it."""

    classes = topicClasses()
    assert set(classes) == set(TopicName)
    for name, cls in classes.items():
        assert cls().getTopicName() == name.value

def testCreateTopicChain():
    """Chains are created outermost first."""

    chain = createTopicChain(['Labeled', TopicName.TEST_FAILURE, 'BuildError'])
    assert [node.getTopicName() for node in chain] == [
        'Labeled', 'TestFailure', 'BuildError'
        ]
    assert all(isinstance(node, ItemTopic) for node in list(chain)[1:])

def testCreateTopicChainInner():
    inner = Topic()
    chain = createTopicChain(['BuildError'], inner, labels={'flaky'})
    assert chain.topic is inner
    assert createTopicChain([]).getTopicName() == ''

def testCreateTopicChainLabels(gen):
    chain = createTopicChain(['Labeled'], labels={'nightly'})
    chain.addBuild(gen.createBuild(labels=['flaky', 'nightly']))
    assert chain.getLabels() == ['nightly']

def testCreateUnknownTopic():
    with raises(KeyError, match='Unknown topic "Coverage"'):
        createTopicChain(['BuildError', 'Coverage'])
