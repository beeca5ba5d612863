# src/bencodec/rehydrate.py
import collections.abc
import dataclasses
import logging
import types
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union, get_args, get_origin

from bencodec import config
from bencodec.errors import ArrayOverflowError, BencodeError, TypeMismatchError
from bencodec.fields import field_types, is_record, resolve
from bencodec.hooks import call_unmarshaler, is_unmarshaler
from bencodec.value import Kind, kind_of

UNIONS = (Union, types.UnionType)
SEQUENCES = (list, collections.abc.Sequence, collections.abc.MutableSequence,
             collections.abc.Iterable, collections.abc.Collection)
MAPPINGS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


def type_name(target: Any) -> str:
    return getattr(target, '__name__', None) or repr(target)


def _expect(value: Any, kind: Kind, target: Any, offset: Optional[int]) -> Any:
    found = kind_of(value)
    if found is not kind:
        got = found.value if found else type(value).__name__
        raise TypeMismatchError(
            f"Cannot decode {got} into {type_name(target)}, expected {kind.value}", offset)
    return value


def rehydrate(value: Any, target: Any, offset: Optional[int] = None) -> Any:
    """
    Convert a generic decoded value into an instance of target.

    Args:
        value(Any): int, bytes, list or dict as produced by the generic decoder
        target(Any): destination type, e.g. int, str, List[Person], Tuple[int, int], Person
        offset(Optional[int]): where value started in the input, for error reporting

    Returns:
        Any: the converted value
    """
    if target is Any or target is object:
        return value

    origin = get_origin(target)
    args = get_args(target)

    if origin in UNIONS:
        return _rehydrate_union(value, args, offset)

    if is_unmarshaler(target):
        # no input bytes to hand over, the hook gets the canonical encoding
        from bencodec.codec import marshal
        try:
            result, _ = call_unmarshaler(target, marshal(value), 0)
        except BencodeError as e:
            e.offset = offset
            raise
        return result

    if origin is None and isinstance(target, type):
        if issubclass(target, int):
            number = _expect(value, Kind.INTEGER, target, offset)
            if issubclass(target, bool) and number not in (0, 1):
                raise TypeMismatchError(f"{number} is not a valid bool, expected 0 or 1", offset)
            try:
                return target(number)
            except ValueError as e:
                raise TypeMismatchError(f"{number} is not a valid {target.__name__}", offset) from e
        if issubclass(target, str):
            raw = _expect(value, Kind.BYTE_STRING, target, offset)
            try:
                return target(raw.decode(config.TEXT_ENCODING))
            except UnicodeDecodeError as e:
                raise TypeMismatchError(f"Byte string is not valid {config.TEXT_ENCODING} text", offset) from e
            except ValueError as e:
                raise TypeMismatchError(f"{raw!r} is not a valid {target.__name__}", offset) from e
        if issubclass(target, (bytes, bytearray)):
            return target(_expect(value, Kind.BYTE_STRING, target, offset))
        if is_record(target):
            return _rehydrate_record(target, _expect(value, Kind.DICTIONARY, target, offset), offset)
        if target is list:
            return list(_expect(value, Kind.LIST, target, offset))
        if target is tuple:
            return tuple(_expect(value, Kind.LIST, target, offset))
        if target is dict:
            return dict(_expect(value, Kind.DICTIONARY, target, offset))

    if origin in SEQUENCES:
        items = _expect(value, Kind.LIST, target, offset)
        return _fill_sequence(items, args[0] if args else Any, offset)

    if origin is tuple:
        items = _expect(value, Kind.LIST, target, offset)
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple(_fill_sequence(items, args[0], offset))
        return _fill_array(items, fixed_args(args), offset)

    if origin in MAPPINGS:
        mapping = _expect(value, Kind.DICTIONARY, target, offset)
        key_type, value_type = args if args else (Any, Any)
        return {rehydrate_key(key, key_type, offset): rehydrate(item, value_type, offset)
                for key, item in mapping.items()}

    raise TypeMismatchError(f"No decoding rule for destination type {type_name(target)}", offset)


def _rehydrate_union(value: Any, args: Tuple[Any, ...], offset: Optional[int]) -> Any:
    arms = [arg for arg in args if arg is not type(None)]
    for arm in arms:
        try:
            return rehydrate(value, arm, offset)
        except TypeMismatchError:
            continue
    names = ', '.join(type_name(arm) for arm in arms)
    raise TypeMismatchError(f"Decoded value matches none of {names}", offset)


def rehydrate_key(key: str, key_type: Any, offset: Optional[int]) -> Any:
    if key_type is Any or key_type is str:
        return key
    if key_type is bytes:
        return key.encode(config.TEXT_ENCODING, config.KEY_ERRORS)
    raise TypeMismatchError(f"Dictionary keys cannot be decoded into {type_name(key_type)}", offset)


def fixed_args(args: Tuple[Any, ...]) -> Tuple[Any, ...]:
    # Tuple[()] reports ((),) on older interpreters
    return () if args == ((),) else args


def _fill_sequence(items: List[Any], element_type: Any, offset: Optional[int]) -> List[Any]:
    """Rehydrate every element of a decoded list into a fresh list.

    Nested lists recurse into fresh sequences of the element type and
    dictionaries become fresh records when the element type is a dataclass.
    """
    return [rehydrate(item, element_type, offset) for item in items]


def _fill_array(items: List[Any], element_types: Tuple[Any, ...], offset: Optional[int]) -> tuple:
    """Like _fill_sequence, bounded by the length of a fixed-size tuple"""
    if len(items) > len(element_types):
        raise ArrayOverflowError(
            f"Decoded {len(items)} elements into an array of length {len(element_types)}", offset)

    result = [rehydrate(item, element_type, offset)
              for item, element_type in zip(items, element_types)]
    # missing trailing elements keep their zero value
    result.extend(zero_value(element_type) for element_type in element_types[len(items):])
    return tuple(result)


def _rehydrate_record(cls: type, mapping: Dict[str, Any], offset: Optional[int]) -> Any:
    values = {}
    for key, item in mapping.items():
        spec = resolve(cls, key)
        if spec is None:
            logging.debug(f"Dropping key {key!r} with no matching field in {cls.__name__}")
            continue
        values[spec.name] = rehydrate(item, spec.type, offset)
    return build_record(cls, values)


def build_record(cls: type, values: Dict[str, Any]) -> Any:
    """
    Instantiate a dataclass from a partial set of field values.

    Fields missing from values keep their declared default, or get their type's
    zero value when they have none. That includes init=False fields, which
    __init__ leaves unset unless __post_init__ assigns them.
    """
    hints = field_types(cls)
    kwargs = {}
    late = {}
    unset = []
    for f in dataclasses.fields(cls):
        if f.name in values:
            if f.init:
                kwargs[f.name] = values[f.name]
            else:
                late[f.name] = values[f.name]
        elif f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            if f.init:
                kwargs[f.name] = zero_value(hints.get(f.name, Any))
            else:
                unset.append(f.name)

    record = cls(**kwargs)
    for name in unset:
        if not hasattr(record, name):
            late[name] = zero_value(hints.get(name, Any))
    for name, value in late.items():
        # works for frozen dataclasses too
        object.__setattr__(record, name, value)
    return record


def zero_value(target: Any) -> Any:
    """The value a field of type target holds before anything is decoded into it"""
    if target is Any or target is object:
        return None

    origin = get_origin(target)
    args = get_args(target)

    if origin in UNIONS:
        return None if type(None) in args else zero_value(args[0])
    if origin in SEQUENCES:
        return []
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return ()
        return tuple(zero_value(arg) for arg in fixed_args(args))
    if origin in MAPPINGS:
        return {}

    if origin is None and isinstance(target, type):
        if issubclass(target, Enum):
            return next(iter(target), None)
        if is_record(target):
            return build_record(target, {})
        if issubclass(target, (int, str, bytes, bytearray, list, tuple, dict)):
            return target()
    return None
