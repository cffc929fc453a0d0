# SPDX-License-Identifier: BSD-3-Clause

"""
Global configuration.
This module contains the configuration parameters which are read once,
at startup, from the "buildalert.ini" file in the data directory.
"""


from configparser import DEFAULTSECT, ConfigParser
from pathlib import Path
from typing import IO, Mapping, Optional
from urllib.parse import SplitResult, urlsplit, urlunsplit

CONFIG_FILE_NAME = 'buildalert.ini'
"""Name of the configuration file inside the data directory."""

dbDir: str
"""Directory this instance's configuration and logs are located in."""

rootURL = 'https://cdash.example.com/'
"""The root URL of the dashboard, used to link to builds from
notifications. Must end with a slash.
"""

mailEnabled = False
"""Send notifications by e-mail. If disabled, notifications are dropped
after they have been composed.
"""

smtpRelay = 'localhost'
"""Host name of the SMTP server that relays our notification e-mails."""

mailSender = 'buildalert@localhost'
"""Address used in the "From:" header of notification e-mails."""

_booleanStates = {
    '1': True, 'yes': True, 'true': True, 'on': True,
    '0': False, 'no': False, 'false': False, 'off': False
    }

def loadConfig(file: IO[str]) -> None:
    """Load the configuration from an INI file.

    Raise OSError if the file couldn't be read.
    Raise configparser.Error if the file is not a valid INI file.
    Raise NameError if an unknown section or key exists in the file.
    Raise KeyError if a required key does not exist in the file.
    Raise ValueError if an invalid value is provided for a key.
    """

    config = ConfigParser()
    config.read_file(file)

    for name, section in config.items():
        if name == 'Server':
            _loadServer(name, section)
        elif name == 'Mail':
            _loadMail(name, section)
        elif name != DEFAULTSECT:
            raise NameError(f'Unknown section "{name}"')

def _loadServer(name: str, section: Mapping[str, str]) -> None:
    """Load the server configuration from an INI section.
    Can raise the same exceptions as loadConfig().
    """

    url: Optional[SplitResult] = None

    for key, value in section.items():
        if key == 'rooturl':
            try:
                url = urlsplit(value)
                # For parsing of port as a sanity check.
                url.port # pylint: disable=pointless-statement
            except ValueError as ex:
                raise ValueError(f'Bad root URL "{value}": {ex}') from ex
            if url.scheme not in ('http', 'https'):
                raise ValueError(
                    f'Unknown scheme "{url.scheme}" in root URL "{value}"'
                    )
            if url.query:
                raise ValueError(f'Root URL "{value}" contains query')
            if url.fragment:
                raise ValueError(f'Root URL "{value}" contains fragment')
        else:
            raise NameError(f'Unknown key "{key}" in section "{name}"')

    if url is None:
        raise KeyError(f'Section "{name}" is missing key "rootURL"')
    else:
        path = url.path
        if not path.endswith('/'):
            path += '/'
        global rootURL
        rootURL = urlunsplit((url.scheme, url.netloc, path, '', ''))

def _loadMail(name: str, section: Mapping[str, str]) -> None:
    """Load the e-mail delivery configuration from an INI section.
    Can raise the same exceptions as loadConfig().
    """

    global mailEnabled, smtpRelay, mailSender

    for key, value in section.items():
        if key == 'enabled':
            try:
                mailEnabled = _booleanStates[value.lower()]
            except KeyError:
                raise ValueError(
                    f'Bad boolean "{value}" for key "{key}"'
                    ) from None
        elif key == 'smtprelay':
            if not value:
                raise ValueError('SMTP relay must not be empty')
            smtpRelay = value
        elif key == 'sender':
            if '@' not in value:
                raise ValueError(f'Bad sender address "{value}"')
            mailSender = value
        else:
            raise NameError(f'Unknown key "{key}" in section "{name}"')

def openConfig(path: Path, mode: str) -> IO[str]:
    """Open the configuration file in the given directory."""
    return open(path / CONFIG_FILE_NAME, mode, encoding='utf-8')

def initConfig(path: Path) -> None:
    """Initialize the global configuration.

    The given path will be used to read configuration file from and
    as the logs directory.
    Can raise the same exceptions as loadConfig().
    """

    global dbDir
    dbDir = str(path)

    with openConfig(path, 'r') as file:
        loadConfig(file)
