# SPDX-License-Identifier: BSD-3-Clause

'''
Sends notification emails about builds using twisted.mail.smtp sendmail.
The NotificationDispatcher decides which subscribers should be told about
which builds, using a topic chain per subscriber, and records what was sent
in the notification history of the builds.
'''

from email.message import Message
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate
from html import escape
from typing import Callable, Iterable, Iterator, List, Optional, Sequence
import logging
import re
import time

from twisted.internet.defer import Deferred
from twisted.mail.smtp import sendmail
from twisted.python.failure import Failure

from buildalert.buildlib import Build, BuildEmail
from buildalert.subscriberlib import Subscriber
from buildalert.topics import (
    ItemTopic, Labelable, Topic, TopicName, createTopicChain
)
from buildalert.topicview import TopicPresenter, TopicSection
import buildalert.config

_reAddressSep = re.compile(r'[\s,;]+')

DEFAULT_TOPICS = (
    TopicName.UPDATE_ERROR,
    TopicName.CONFIGURE,
    TopicName.BUILD_WARNING,
    TopicName.BUILD_ERROR,
    TopicName.TEST_FAILURE,
    )
"""Topics for subscribers that did not choose any."""

def sendNotification(locator: str,
                     presenter: TopicPresenter
                     ) -> Optional[Deferred]:
    '''Sends a notification about builds.
    The locator specifies how the message should be sent: the protocol and
    the recipient. The presenter is used to create the message body.
    The presentation is constructed before this method returns, to ensure
    the data being presented is from the moment the event happened.
    The notification is sent asynchronously; the returned Deferred fires
    when sending is done, or None is returned if nothing will be sent.
    '''
    protocol, path = locator.split(':', 1)
    if protocol != 'mailto':
        logging.error('Unknown notification protocol "%s"', protocol)
        return None

    recipients = _reAddressSep.split(path)

    def createPlaintextContent() -> Iterator[str]:
        yield from presenter.bodyLines()
        yield '' # force a new-line at end of file

    def createHTMLContent() -> Iterator[str]:
        yield '<HTML>'
        yield '<HEAD></HEAD>'
        yield '<BODY>'
        yield '<H3>Build notification</H3>'
        yield '<B>%s</B>' % escape(presenter.singleLineSummary)
        yield '<TABLE border="1" style="margin:4px 10px;" summary="topics">'
        for key, value in presenter.keyValue():
            if key == 'topic.name':
                yield '<TR><TD>%s</TD>' % escape(value)
            elif key == 'topic.summary':
                yield '<TD>%s</TD>' % escape(value)
            elif key == 'topic.count':
                yield '<TD>%s</TD></TR>' % escape(value)
        yield '</TABLE>'
        for heading, lines in presenter.iterSections():
            yield '<H4>%s</H4>' % escape(heading)
            yield '<PRE>%s</PRE>' % escape('\n'.join(lines))
        yield '</BODY></HTML>'

    message = MIMEMultipart('alternative')
    message['Subject'] = presenter.singleLineSummary
    message.attach(MIMEText('\n'.join(createPlaintextContent()), 'plain'))
    message.attach(MIMEText('\n'.join(createHTMLContent()), 'html'))

    config = buildalert.config
    if not config.mailEnabled:
        logging.debug(
            'Dropping notification e-mail because notifications '
            'by e-mail are disabled'
            )
        return None
    return _sendMailLogged(
        config.smtpRelay, config.mailSender, recipients, message
        )

def _logMailSendFailure(failure: Failure) -> Failure:
    logging.error('Notification sending failed: %s', failure.getErrorMessage())
    return failure

def _sendMailLogged(smtpRelay: str,
                    mailSender: str,
                    recipients: Sequence[str],
                    message: Message
                    ) -> Deferred:
    message['From'] = mailSender
    message['To'] = ', '.join(recipients)
    message['Date'] = formatdate()
    return sendmail(
        smtpRelay, mailSender, recipients, message.as_string().encode()
        ).addErrback(_logMailSendFailure)

Sender = Callable[[str, TopicPresenter], Optional[Deferred]]

class NotificationDispatcher:
    """Notifies subscribers about the builds of a notification cycle.

    A new topic chain is created for every subscriber on every cycle,
    so chains are never shared.
    """

    def __init__(self,
                 subscribers: Iterable[Subscriber],
                 send: Sender = sendNotification,
                 getTime: Callable[[], float] = time.time
                 ):
        super().__init__()
        self.subscribers = list(subscribers)
        self.send = send
        self.getTime = getTime

    def createChain(self, subscriber: Subscriber) -> Topic:
        names = list(subscriber.topics) \
             or [topicName.value for topicName in DEFAULT_TOPICS]
        if subscriber.labels and TopicName.LABELED.value not in names:
            names.insert(0, TopicName.LABELED.value)
        chain = createTopicChain(names)
        chain.setSubscriber(subscriber)
        return chain

    def collectSections(self,
                        chain: Topic,
                        builds: Sequence[Build]
                        ) -> List[TopicSection]:
        """Feeds the builds to the chain and returns the sections for
        the builds that the chain's subscriber has not been notified
        about yet.
        """

        for build in builds:
            chain.addBuild(build)

        labeled = None
        for topic in chain:
            if isinstance(topic, Labelable):
                labeled = topic.getBuildCollection()

        sections = []
        for topic in chain:
            if not isinstance(topic, ItemTopic):
                continue
            category = topic.getCategory()
            pending = [
                build
                for build in topic.getBuildCollection()
                if (labeled is None or build in labeled)
                and not topic.hasSubscriberAlreadyBeenNotified(build, category)
                ]
            if pending:
                sections.append(TopicSection(topic, pending))
        return sections

    def dispatch(self, builds: Sequence[Build]) -> List[TopicPresenter]:
        """Sends a notification to each subscriber that has something to
        be notified about. Returns the presenters of the composed messages.

        The notification history of the builds is extended only when
        the sender's Deferred succeeds; a sender that returns None did not
        deliver anything, so nothing is recorded.
        """

        presenters = []
        for subscriber in self.subscribers:
            chain = self.createChain(subscriber)
            sections = self.collectSections(chain, builds)
            if not sections:
                logging.debug('Nothing to notify "%s" about',
                              subscriber.getAddress())
                continue

            presenter = TopicPresenter(chain, sections)
            address = subscriber.getAddress()
            logging.info('Notifying "%s": %s',
                         address, presenter.singleLineSummary)
            deferred = self.send(f'mailto:{address}', presenter)
            presenters.append(presenter)

            if deferred is None:
                logging.debug('Notification to "%s" was not sent; '
                              'not recording it', address)
            else:
                deferred.addCallback(self._recordSent, address, sections)
        return presenters

    def _recordSent(self,
                    result: object,
                    address: str,
                    sections: Sequence[TopicSection]
                    ) -> object:
        """Adds a delivered notification to the history of the builds
        it was about, one record per notification category.
        """
        now = int(self.getTime())
        for section in sections:
            category = section.topic.getCategory()
            if category is None:
                continue
            for build in section.builds:
                build.addBuildEmail(BuildEmail(category, address, now))
        return result

_testMailBody = '''
This is a notification test e-mail sent by BuildAlert.
'''

def sendTestMail(smtpRelay: str, mailSender: str, recipient: str) -> Deferred:
    message = MIMEText(_testMailBody)
    message['Subject'] = 'BuildAlert notification test'
    recipients = _reAddressSep.split(recipient)
    return _sendMailLogged(smtpRelay, mailSender, recipients, message)
