# SPDX-License-Identifier: BSD-3-Clause

from contextlib import contextmanager
from importlib import import_module, resources
from inspect import getmodulename
from logging import Logger
from pathlib import Path
from types import ModuleType
from typing import IO, Any, Iterable, Iterator, Sized, Tuple, Union
import os


class IllegalStateError(Exception):
    '''Raised when an object receives a request that is not valid for the
    current state of the object.
    '''

def pluralize(word: str, amount: Union[int, Sized]) -> str:
    '''Returns the given word in singular or plural form, depending on the
    given amount. The amount can an integer or a data structure that supports
    len().
    '''
    if not isinstance(amount, int):
        amount = len(amount)
    # Note: So far this primitive approach is good enough for all words we feed
    #       it.
    return word if amount == 1 else (word + 's')

@contextmanager
def atomicWrite(
        path: Path, mode: str, fsync: bool = True, **kwargs: Any
        ) -> Iterator[IO[Any]]:
    '''A context manager to write a file in such a way that in an event of
    abnormal program termination either an old version of the file remains,
    or a new one, but not something inbetween.
    It writes the new data into a temporary file, named like the actual file
    with a ".tmp" suffix appended. When the file is closed, the temporary
    file atomically replaces the actual file.

    'mode' is the mode in which the file will be opened; only modes "w" and
    "wb" are supported.
    'fsync' can be set to False to not force changes to be committed to
    long-term storage; this is faster but destroys the atomicity guarantee.
    Other keyword arguments are passed to the builtin open() function.

    If there is an uncaught exception in the body of the "with" statement,
    the old version of the file will remain.
    '''

    if mode not in ('w', 'wb'):
        raise ValueError(f'invalid mode: {mode!r}')

    tempPath = path.with_name(path.name + '.tmp')
    try:
        with open(tempPath, mode, **kwargs) as out:
            yield out
            if fsync:
                # Flush Python's buffers.
                out.flush()
                # Flush OS buffers.
                os.fsync(out.fileno())
    except FileNotFoundError:
        # Don't attempt to remove temporary file if it couldn't be created.
        raise
    except BaseException:
        try:
            # Clean up temporary file.
            os.remove(tempPath)
        finally:
            # Propagate the original exception, even if the remove fails.
            raise
    else:
        # Move the temporary file over the actual file.
        os.replace(tempPath, path)

def iterModules(packageName: str,
                log: Logger
                ) -> Iterable[Tuple[str, ModuleType]]:
    """Yields pairs of module name and module object for each module in
    `packageName`.
    If any module fails to import, it is omitted from the result and the
    error is logged to `log`.
    The __init__ module is excluded from the results.
    """
    for entry in sorted(resources.files(packageName).iterdir(),
                        key=lambda entry: entry.name):
        moduleName = getmodulename(entry.name)
        if moduleName is None or moduleName == '__init__':
            continue
        fullName = packageName + '.' + moduleName
        try:
            module = import_module(fullName)
        except Exception:
            log.exception('Error importing module "%s"', fullName)
        else:
            yield moduleName, module
