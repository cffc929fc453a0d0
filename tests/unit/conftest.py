# SPDX-License-Identifier: BSD-3-Clause

"""Fixtures and other global definitions for pytest."""

from pytest import fixture

from buildalert.subscriberlib import Subscriber

from buildgeneratorlib import BuildGenerator


@fixture
def gen():
    return BuildGenerator()

@fixture
def subscriber():
    return Subscriber('dev@example.com')
