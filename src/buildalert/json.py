# SPDX-License-Identifier: BSD-3-Clause

"""Functions for creating data transfer objects from JSON and vice versa.
Data transfer objects are defined using the `attrs` library.
"""

from enum import Enum
from typing import (
    Callable, Dict, Iterator, List, Tuple, Type, TypeVar, Union, cast
)

from typing_extensions import get_args, get_origin
import attr


def _valueToJSON(value: object) -> object:
    if value is None or isinstance(value, (str, int, float)):
        return value
    elif isinstance(value, Enum):
        return value.name.lower()
    elif attr.has(value.__class__):
        return dataToJSON(value)
    elif isinstance(value, (list, tuple)):
        return [_valueToJSON(elem) for elem in value]
    else:
        raise TypeError(value.__class__.__name__)

def dataToJSON(data: object) -> Dict[str, object]:
    """Create a dictionary representation of the given data transfer object.
    The dictionary is suitable to be converted to a JSON string.
    The data transfer object must be from a class using `attrs`.
    Only fields that are passed to the constructor are included.
    """

    jsonNode: Dict[str, object] = {}
    for field in attr.fields(data.__class__):
        if field.init:
            name = field.name
            jsonNode[name] = _valueToJSON(getattr(data, name))
    return jsonNode

def _describeType(typ: type) -> str:
    """Describe the given Python type in a way that makes sense for
    a user providing data in JSON format.
    """
    if issubclass(typ, str):
        return 'string'
    elif issubclass(typ, bool):
        return 'Boolean'
    elif issubclass(typ, int):
        return 'integer'
    elif issubclass(typ, float):
        return 'floating point'
    elif hasattr(typ, 'items') or attr.has(typ):
        return 'object'
    elif hasattr(typ, '__iter__'):
        return 'array'
    else:
        return typ.__name__

def _unwrapOptional(name: str, typ: type) -> Tuple[type, bool]:
    """Returns the value type and whether None is accepted."""

    if get_origin(typ) is not Union:
        return typ, False
    optional = False
    valueType = None
    for member in get_args(typ):
        if member is type(None):
            optional = True
        elif valueType is None:
            valueType = member
        else:
            raise TypeError(f"Ambiguous type for attribute '{name}'")
    # The typing module will remove duplicate types and reduce
    # one-type unions to just that type.
    assert valueType is not None
    return valueType, optional

def _convertValue(name: str, value: object, typ: type) -> object:
    """Convert a JSON value to the given Python type.
    Raise ValueError if the value does not fit the type.
    """

    valueType, optional = _unwrapOptional(name, typ)

    if value is None and optional:
        return None

    origin = get_origin(valueType)
    if origin is list or origin is List:
        if not isinstance(value, list):
            raise ValueError(f"Expected array value for field '{name}'")
        elemType, = get_args(valueType)
        return [
            _convertValue(f'{name}[{index:d}]', elem, elemType)
            for index, elem in enumerate(value)
            ]
    elif attr.has(valueType):
        try:
            return jsonToData(value, valueType)
        except ValueError as ex:
            raise ValueError(f"In field '{name}': {ex}") from ex
    elif issubclass(valueType, Enum):
        if not isinstance(value, str):
            raise ValueError(f"Expected string value for field '{name}'")
        memberName = value.upper()
        try:
            return valueType.__members__[memberName]
        except KeyError:
            raise ValueError(
                f"Invalid value '{value}' for field '{name}'; "
                f"expected one of: " + ', '.join(
                    mbr.lower() for mbr in valueType.__members__)
                ) from None
    else:
        # JSON does not distinguish integral floating point numbers.
        if valueType is float and isinstance(value, int) \
                and not isinstance(value, bool):
            return float(value)
        # Booleans are integers in Python, but not in JSON.
        if not isinstance(value, valueType) or (
                isinstance(value, bool) and not issubclass(valueType, bool)):
            raise ValueError(f"Expected {_describeType(valueType)} "
                             f"value for field '{name}'")
        return value

def mapJSON(jsonNode: object,
            cls: Type,
            partial: bool = True
            ) -> Dict[str, object]:
    """Map a JSON object to a data transfer class.

    Nested data transfer classes and lists of them are mapped recursively.
    Fields that the class does not accept in its constructor cannot be
    provided in JSON.

    @param partial: If L{False}, raise L{ValueError} when not all class
        fields occur in the JSON object.
    @return: A dictionary mapping field name to value.
    @raise ValueError: If the structure of the JSON data does not map
        to the given data transfer class.
    """

    iterItems: Callable[[], Iterator[Tuple[str, object]]]
    try:
        iterItems = getattr(jsonNode, 'items')
    except AttributeError:
        raise ValueError(f"Expected object, "
                         f"got {_describeType(jsonNode.__class__)}") from None

    fields = {
        name: attrib
        for name, attrib in attr.fields_dict(cls).items()
        if attrib.init
        }
    kwargs: Dict[str, object] = {}
    for name, value in iterItems():
        try:
            attrib = fields.pop(name)
        except KeyError:
            raise ValueError(f"Field '{name}' does not exist") from None

        attribType = attrib.type
        if attribType is None:
            # We raise TypeError since this is an error on the data
            # transfer class instead of invalid JSON data.
            raise TypeError(f"No type specified for attribute '{name}'")

        kwargs[name] = _convertValue(name, value, attribType)

    if not partial:
        missing = [name for name, attrib in fields.items()
                   if attrib.default is attr.NOTHING]
        if missing:
            raise ValueError(f"Missing values for fields: {', '.join(missing)}")

    return kwargs

T = TypeVar('T')

def jsonToData(jsonNode: object, cls: Type[T]) -> T:
    """Create a data transfer object from a JSON dictionary.
    Raise ValueError if the structure of the JSON data does not map
    to the given data transfer class.
    """

    kwargs = mapJSON(jsonNode, cls, partial=False)
    return cast(T, cls(**kwargs)) # type: ignore[call-arg]
