# SPDX-License-Identifier: BSD-3-Clause

"""
Wraps the Twisted reactor in a way that makes it more friendly to mypy.

U{https://twistedmatrix.com/trac/ticket/9909}
"""

from typing import Awaitable, Optional, TypeVar, cast

from twisted.internet.defer import ensureDeferred
from twisted.internet.interfaces import IReactorCore, IReactorTime
from twisted.python.failure import Failure
import twisted.internet.reactor


class IReactor(IReactorCore, IReactorTime):
    """Combines the reactor interfaces that we use."""

reactor = cast(IReactor, twisted.internet.reactor)
"""Twisted's default reactor, in a way mypy can deal with."""

T = TypeVar('T')

def runInReactor(reactor: IReactorCore, call: Awaitable[T]) -> T:
    """Runs the reactor until the given call is done.
    Returns the call's result or raises its exception.
    """

    def run() -> None:
        ensureDeferred(call).addCallbacks(done, failed)

    output: T

    def done(result: T) -> None:
        nonlocal output
        output = result
        reactor.stop()

    failure: Optional[Failure] = None

    def failed(reason: Failure) -> None:
        nonlocal failure
        failure = reason
        reactor.stop()

    reactor.callWhenRunning(run)
    reactor.run()
    if failure is not None:
        failure.raiseException()
    return output
