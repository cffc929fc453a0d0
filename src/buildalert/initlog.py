# SPDX-License-Identifier: BSD-3-Clause

from pathlib import Path
import logging

from buildalert.version import VERSION


def initLogging(dbDir: Path, debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='* %(asctime)s %(levelname)-8s> %(message)s',
        filename=dbDir / 'buildalert-log.txt'
        )

    logging.info('> > BuildAlert startup, version %s', VERSION)
