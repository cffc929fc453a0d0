# SPDX-License-Identifier: BSD-3-Clause

from importlib import metadata

VERSION = metadata.version('buildalert')
"""BuildAlert version."""
