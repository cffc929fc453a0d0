# SPDX-License-Identifier: BSD-3-Clause

"""Loading of build submissions and subscriber lists from JSON.

A submission is a JSON object with a "builds" array; each element
describes one build using the field names of `Build`. Parent builds are
referenced by "parentId" and must be part of the same submission.
A subscriber list is a JSON object with a "subscribers" array.
"""

from typing import IO, Dict, List, Type, TypeVar
import json

from buildalert.buildlib import Build
from buildalert.json import jsonToData
from buildalert.subscriberlib import Subscriber

T = TypeVar('T')

def _parseArray(data: object, key: str, cls: Type[T]) -> List[T]:
    if not isinstance(data, dict):
        raise ValueError('Expected object at top level')
    try:
        nodes = data[key]
    except KeyError:
        raise ValueError(f"Missing '{key}' array") from None
    if not isinstance(nodes, list):
        raise ValueError(f"Expected '{key}' to be an array")
    records = []
    for index, node in enumerate(nodes):
        try:
            records.append(jsonToData(node, cls))
        except ValueError as ex:
            raise ValueError(f'{key}[{index:d}]: {ex}') from ex
    return records

def parseBuilds(data: object) -> List[Build]:
    """Creates builds from parsed JSON data, with their parents resolved.
    Raises ValueError if the data is not a valid submission.
    """

    builds = _parseArray(data, 'builds', Build)
    buildsById: Dict[int, Build] = {}
    for build in builds:
        if build.id in buildsById:
            raise ValueError(f'Duplicate build ID {build.id:d}')
        buildsById[build.id] = build

    for build in builds:
        parentId = build.parentId
        if parentId is None:
            continue
        if parentId == build.id:
            raise ValueError(f'Build {build.id:d} is its own parent')
        try:
            build.parent = buildsById[parentId]
        except KeyError:
            raise ValueError(
                f'Build {build.id:d} has unknown parent {parentId:d}'
                ) from None
    return builds

def parseSubscribers(data: object) -> List[Subscriber]:
    """Creates subscribers from parsed JSON data.
    Raises ValueError if the data is not a valid subscriber list.
    """
    return _parseArray(data, 'subscribers', Subscriber)

def loadBuilds(file: IO[str]) -> List[Build]:
    """Loads a submission from a JSON file.
    Raises ValueError if the file does not contain a valid submission.
    """
    return parseBuilds(json.load(file))

def loadSubscribers(file: IO[str]) -> List[Subscriber]:
    """Loads subscribers from a JSON file.
    Raises ValueError if the file does not contain a valid subscriber list.
    """
    return parseSubscribers(json.load(file))
