# SPDX-License-Identifier: BSD-3-Clause

"""
Command line interface.
"""


from enum import Enum, auto
from pathlib import Path
from typing import TYPE_CHECKING, IO, Dict, List, Optional, Sequence, Tuple
import json

from click import (
    BadParameter, Context, File, ParamType, Parameter, argument, echo,
    get_current_context, group, option, pass_context, pass_obj,
    version_option, wrap_text
)

from buildalert.topics import TopicName

if TYPE_CHECKING:
    from twisted.internet.defer import Deferred
    from buildalert.topicview import TopicPresenter


# We import inside functions to avoid wasting time importing modules that the
# issued command doesn't need, such as the Twisted reactor.
# pylint: disable=import-outside-toplevel

class DirectoryParamType(ParamType):
    """Parameter type for specifying directories."""

    name = 'directory'

    def get_metavar(self, param: Parameter, ctx: Optional[Context] = None
                    ) -> str:
        return 'DIR'

    def convert(
            self,
            value: str,
            param: Optional[Parameter],
            ctx: Optional[Context]
            ) -> Path:

        path = Path(value)
        if path.exists() and not path.is_dir():
            raise BadParameter(f'Path is not a directory: {path}')
        else:
            return path

class OutputFormat(Enum):
    TEXT = auto()
    JSON = auto()

class GlobalOptions:

    def __init__(self, debug: bool, path: Path):
        self.debug = debug
        self.path = path
        from buildalert.reactor import reactor
        self.reactor = reactor

    def apply(self) -> None:
        """Initialize configuration and logging according to
        the global options.
        """

        path = self.path
        if not path.is_dir():
            echo(f"Path is not a directory: {path}", err=True)
            get_current_context().exit(1)

        # Read the config first.
        # This doubles as a sanity check of the 'path' option.
        import buildalert.config
        try:
            buildalert.config.initConfig(path)
        except Exception as ex:
            echo(f"Error reading configuration: {ex}", err=True)
            get_current_context().exit(1)

        from buildalert.initlog import initLogging
        initLogging(path, self.debug)

        if self.debug:
            import logging
            import warnings
            logging.captureWarnings(True)
            warnings.simplefilter('default')

def formatDetails(message: str) -> str:
    """Format text explaining details for display below a main result."""
    return wrap_text(message, initial_indent='  ', subsequent_indent='  ')

def loadSubmission(file: IO[str]) -> List:
    """Load builds from a submission file.
    If the file is not a valid submission, exit with an error.
    """
    from buildalert.submission import loadBuilds
    try:
        return loadBuilds(file)
    except ValueError as ex:
        echo(f"buildalert: Invalid submission '{file.name}'", err=True)
        echo(formatDetails(str(ex)), err=True)
        get_current_context().exit(1)

topicNames = [topicName.value for topicName in TopicName]


@group()
@option('--debug', is_flag=True,
        help='Enable debug logging and warnings.')
@option('-d', '--dir', 'path', type=DirectoryParamType(), default='.',
        help='Directory containing configuration and logging.')
@version_option(package_name='buildalert', prog_name='BuildAlert',
                message='%(prog)s version %(version)s')
@pass_context
def main(ctx: Context, debug: bool, path: Path) -> None:
    """Command line interface to BuildAlert."""
    ctx.obj = GlobalOptions(debug=debug, path=path)

@main.command()
@option('--url', default='http://localhost/',
        help='URL of the dashboard, used to link to builds.')
@option('--smtp-relay', default='localhost',
        help='SMTP server that relays notification e-mails.')
@option('--sender', default='buildalert@localhost',
        help='Sender address of notification e-mails.')
@pass_obj
def init(
        globalOptions: GlobalOptions,
        url: str,
        smtp_relay: str,
        sender: str
        ) -> None:
    """Create a BuildAlert directory."""

    path = globalOptions.path
    path.mkdir(mode=0o770, exist_ok=True)

    import buildalert.config
    try:
        with buildalert.config.openConfig(path, 'x') as file:
            # ConfigParser cannot write comments, so we manually format
            # our initial configuration file instead.
            print('[Server]', file=file)
            print(f'# The URL under which the dashboard is accessed '
                  f'by the end user.\n'
                  f'rootURL = {url}',
                  file=file)
            print('\n[Mail]', file=file)
            print(f'# Set to "yes" to actually send notification e-mails.\n'
                  f'enabled = no\n'
                  f'smtpRelay = {smtp_relay}\n'
                  f'sender = {sender}',
                  file=file)
    except FileExistsError:
        echo("Refusing to overwrite existing configuration file.", err=True)
        get_current_context().exit(1)
    except Exception as ex:
        echo(f"Failed to create configuration file: {ex}", err=True)
        get_current_context().exit(1)

    echo(f"BuildAlert directory created in {path}.", err=True)

@main.command()
@argument('submission', type=File('r', encoding='utf-8'))
@option('-t', '--topic', 'topics', multiple=True, type=str,
        help='Topic to check, outermost first; can be repeated. '
             f"One of: {', '.join(topicNames)}. "
             'If omitted, all topics are checked.')
@option('--text', 'fmt', flag_value=OutputFormat.TEXT, default=True,
        help="Output as human-readable text.")
@option('--json', 'fmt', flag_value=OutputFormat.JSON,
        help="Output as JSON.")
@pass_obj
def check(
        globalOptions: GlobalOptions,
        submission: IO[str],
        topics: Sequence[str],
        fmt: OutputFormat
        ) -> None:
    """Classify the builds in a submission by topic."""

    from buildalert.topics import ItemTopic, createTopicChain
    from buildalert.topicview import formatFixedItem

    builds = loadSubmission(submission)
    try:
        chain = createTopicChain(topics or topicNames)
    except KeyError as ex:
        echo(f"buildalert: {ex.args[0]}", err=True)
        get_current_context().exit(2)

    for build in builds:
        chain.addBuild(build)

    report: List[Dict[str, object]] = []
    for topic in chain:
        name = topic.getTopicName()
        if not name:
            continue
        report.append(dict(
            topic=name,
            description=topic.getTopicDescription(),
            count=topic.getTopicCount() if isinstance(topic, ItemTopic)
                  else len(topic.getBuildCollection()),
            builds=[build.id for build in topic.getBuildCollection()],
            ))
    fixed = [
        (entry.build.id, formatFixedItem(entry.item))
        for entry in chain.getFixed()
        ]

    if fmt is OutputFormat.JSON:
        echo(json.dumps(dict(
            topics=report,
            labels=chain.getLabels(),
            fixed=[dict(build=buildId, item=item) for buildId, item in fixed]
            ), indent=2))
    else:
        for entry in report:
            buildIds = ', '.join(str(buildId) for buildId in entry['builds'])
            echo(f"{entry['topic']}: {entry['description']}: "
                 f"{entry['count']} (builds: {buildIds or 'none'})")
        labels = chain.getLabels()
        if labels:
            echo(f"Labels: {', '.join(labels)}")
        for buildId, item in fixed:
            echo(f"Fixed in build {buildId}: {item}")

@main.command()
@argument('submission', type=File('r', encoding='utf-8'))
@argument('subscribers', type=File('r', encoding='utf-8'))
@option('-n', '--dry-run', is_flag=True,
        help='Print the notifications instead of sending them.')
@option('--update', is_flag=True,
        help='Write the notification history back to the submission file.')
@pass_obj
def notify(
        globalOptions: GlobalOptions,
        submission: IO[str],
        subscribers: IO[str],
        dry_run: bool,
        update: bool
        ) -> None:
    """Notify subscribers about the builds in a submission.

    With --update, only notifications that were actually delivered are
    added to the history in the submission file.
    """

    if dry_run and update:
        echo("buildalert: Option --update cannot be combined with --dry-run",
             err=True)
        get_current_context().exit(2)

    globalOptions.apply()

    from buildalert.notification import NotificationDispatcher
    from buildalert.submission import loadSubscribers

    builds = loadSubmission(submission)
    try:
        subscriberList = loadSubscribers(subscribers)
    except ValueError as ex:
        echo(f"buildalert: Invalid subscribers '{subscribers.name}'", err=True)
        echo(formatDetails(str(ex)), err=True)
        get_current_context().exit(1)

    sent: List[Tuple[str, 'Deferred']] = []
    if dry_run:
        def send(locator: str, presenter: 'TopicPresenter'
                 ) -> Optional['Deferred']:
            echo(f"To: {locator.split(':', 1)[1]}")
            for line in presenter.bodyLines():
                echo(line)
            echo()
            # Nothing was delivered, so nothing may be recorded.
            return None
    else:
        from buildalert.notification import sendNotification
        def send(locator: str, presenter: 'TopicPresenter'
                 ) -> Optional['Deferred']:
            deferred = sendNotification(locator, presenter)
            if deferred is not None:
                sent.append((locator, deferred))
            return deferred

    dispatcher = NotificationDispatcher(subscriberList, send)
    try:
        presenters = dispatcher.dispatch(builds)
    except KeyError as ex:
        echo(f"buildalert: {ex.args[0]}", err=True)
        get_current_context().exit(2)

    failures = []
    if sent:
        from twisted.internet.defer import DeferredList
        from buildalert.reactor import runInReactor
        results = runInReactor(globalOptions.reactor, DeferredList(
            [deferred for _, deferred in sent], consumeErrors=True
            ))
        failures = [
            locator
            for (locator, _), (success, _) in zip(sent, results)
            if not success
            ]
        for locator in failures:
            echo(f"buildalert: Sending to '{locator}' failed", err=True)

    # Record the deliveries that succeeded, even if others failed,
    # so they are not repeated on the next run.
    if update:
        from buildalert.json import dataToJSON
        from buildalert.utils import atomicWrite
        with atomicWrite(Path(submission.name), 'w', encoding='utf-8') as out:
            json.dump(dict(builds=[dataToJSON(build) for build in builds]),
                      out, indent=2)

    if dry_run:
        echo(f"buildalert: {len(presenters):d} notification(s) composed",
             err=True)
    else:
        echo(f"buildalert: {len(presenters):d} notification(s) composed, "
             f"{len(sent) - len(failures):d} sent", err=True)
    if failures:
        get_current_context().exit(1)

@main.command()
@argument('recipient')
@pass_obj
def testmail(globalOptions: GlobalOptions, recipient: str) -> None:
    """Send a test e-mail using the configured mail settings."""

    globalOptions.apply()

    import buildalert.config
    from buildalert.notification import sendTestMail
    from buildalert.reactor import runInReactor

    config = buildalert.config
    try:
        runInReactor(globalOptions.reactor, sendTestMail(
            config.smtpRelay, config.mailSender, recipient
            ))
    except Exception as ex:
        echo(f"buildalert: Sending test e-mail failed: {ex}", err=True)
        get_current_context().exit(1)
    echo(f"buildalert: Test e-mail sent to {recipient}", err=True)
