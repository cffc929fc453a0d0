# SPDX-License-Identifier: BSD-3-Clause

"""Read-only view on the builds that were submitted to the dashboard.

The persistence layer owns these records; they are loaded once per
notification cycle and are not modified by the topic chain.
The only exception is the notification history, which the notification
dispatcher extends after it sent a message.
"""

from enum import Enum
from typing import List, Optional

import attr

from buildalert.collectionlib import BuildEmailCollection


class DiagnosticType(Enum):
    """Kind of message that was reported by the compiler."""

    ERROR = 0
    WARNING = 1

class BuildTestStatus(Enum):
    PASSED = 1
    FAILED = 2
    NOTRUN = 3

class EmailCategory(Enum):
    """Notification categories, under which the notification history
    records what a subscriber was told about a build.
    """

    UPDATE = 1
    CONFIGURE = 2
    WARNING = 3
    ERROR = 4
    TEST = 5
    DYNAMIC_ANALYSIS = 6
    MISSING_TEST = 7

@attr.s(auto_attribs=True, frozen=True)
class BuildDiagnostic:
    """An error or warning reported while compiling."""

    type: DiagnosticType
    text: str
    sourceFile: str = ''
    sourceLine: int = 0
    logLine: int = 0

    @property
    def key(self) -> str:
        return f'{self.type.name}:{self.sourceFile}:{self.sourceLine:d}:' \
               f'{self.text}'

@attr.s(auto_attribs=True, frozen=True)
class BuildTest:
    name: str
    status: BuildTestStatus
    details: str = ''
    time: float = 0.0

    @property
    def key(self) -> str:
        return self.name

@attr.s(auto_attribs=True, frozen=True)
class MissingTest:
    """A test that was expected for a build, but did not report a result."""

    name: str

    @property
    def key(self) -> str:
        return self.name

@attr.s(auto_attribs=True, frozen=True)
class BuildConfigure:
    status: int = 0
    errors: int = 0
    warnings: int = 0
    command: str = ''
    log: str = ''

    @property
    def key(self) -> str:
        return self.command

@attr.s(auto_attribs=True, frozen=True)
class DynamicAnalysis:
    """Result of running a dynamic analysis checker, such as Valgrind,
    on a single test.
    """

    checker: str
    name: str
    status: str = 'passed'
    defects: int = 0

    @property
    def key(self) -> str:
        return f'{self.checker}:{self.name}'

@attr.s(auto_attribs=True, frozen=True)
class BuildUpdate:
    """Outcome of updating the source tree before building."""

    command: str = ''
    status: str = ''
    errors: int = 0
    revision: str = ''

    @property
    def key(self) -> str:
        return self.revision or self.command

@attr.s(auto_attribs=True, frozen=True)
class BuildEmail:
    """Record of a notification that was sent about a build."""

    category: EmailCategory
    address: str
    time: int = 0

@attr.s(auto_attribs=True, eq=False)
class Build:
    """One run of a client machine, as submitted to the dashboard.

    Builds are compared by identity; use `id` to check whether two
    objects describe the same run.
    """

    id: int
    name: str
    site: str = ''
    project: str = ''
    stamp: str = ''
    parentId: Optional[int] = None
    configureErrors: int = 0
    configureWarnings: int = 0
    buildErrors: int = 0
    buildWarnings: int = 0
    testFailed: int = 0
    testNotRun: int = 0
    testPassed: int = 0
    diagnostics: List[BuildDiagnostic] = attr.ib(factory=list)
    tests: List[BuildTest] = attr.ib(factory=list)
    missingTests: List[MissingTest] = attr.ib(factory=list)
    configure: Optional[BuildConfigure] = None
    dynamicAnalyses: List[DynamicAnalysis] = attr.ib(factory=list)
    update: Optional[BuildUpdate] = None
    labels: List[str] = attr.ib(factory=list)
    emails: List[BuildEmail] = attr.ib(factory=list)

    parent: Optional['Build'] = attr.ib(
        default=None, init=False, repr=False
        )
    """Parent build in the sub-project hierarchy, if any.
    This is resolved after loading, from `parentId`.
    """

    def getId(self) -> int:
        return self.id

    def getBuildEmailCollection(self) -> BuildEmailCollection:
        """Returns the notification history of this build,
        keyed by subscriber address.
        """
        collection = BuildEmailCollection()
        for email in self.emails:
            collection.add(email)
        return collection

    def addBuildEmail(self, email: BuildEmail) -> None:
        """Records that a notification was sent about this build."""
        self.emails.append(email)
