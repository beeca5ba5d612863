# src/bencodec/codec.py
import dataclasses
from array import array
from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from enum import Enum
from functools import lru_cache
from typing import Any, Optional, Tuple, get_args, get_origin

from bencodec import config
from bencodec.container import (
    BYTE_SEQUENCES, decode_array, decode_dictionary, decode_list, decode_mapping, decode_record,
    encode_dictionary, encode_list, encode_record,
)
from bencodec.errors import (
    BencodeError, NestingTooDeepError, NotAReferenceError, TruncatedBufferError, TypeMismatchError,
    UnsupportedTypeError,
)
from bencodec.fields import is_frozen, is_record, is_record_instance
from bencodec.hooks import Marshaler, call_marshaler, call_unmarshaler, is_unmarshaler
from bencodec.primitive import decode_byte_string, decode_integer, encode_byte_string, encode_integer
from bencodec.rehydrate import MAPPINGS, SEQUENCES, UNIONS, fixed_args, rehydrate, type_name
from bencodec.value import Kind, Ref, Value, peek_kind


class Shape(Enum):
    """Encoding rule chosen for a Python type"""
    HOOK = 'hook'
    INTEGER = 'integer'
    TEXT = 'text'
    BYTES = 'bytes'
    SEQUENCE = 'sequence'
    MAPPING = 'mapping'
    RECORD = 'record'
    REFERENCE = 'reference'


@lru_cache(maxsize=None)
def classify(cls: type) -> Optional[Shape]:
    """Pick the encoding rule for values of type cls, or None if there is none"""
    if issubclass(cls, Marshaler):
        return Shape.HOOK
    if issubclass(cls, int):
        return Shape.INTEGER
    if issubclass(cls, str):
        return Shape.TEXT
    if issubclass(cls, BYTE_SEQUENCES):
        return Shape.BYTES
    if issubclass(cls, Ref):
        return Shape.REFERENCE
    if dataclasses.is_dataclass(cls):
        return Shape.RECORD
    if issubclass(cls, Mapping):
        return Shape.MAPPING
    if issubclass(cls, (Sequence, array)):
        return Shape.SEQUENCE
    return None


def marshal(value: Any) -> bytes:
    """
    Encode a value to bencode format.

    Integers, str, bytes-like objects, sequences, str-keyed mappings, dataclass
    instances and Refs are supported. Values with a to_bencode() method encode
    themselves.

    Args:
        value(Any): the value to encode

    Returns:
        bytes: the canonical bencoded form
    """
    try:
        return _encode_as(classify(type(value)), value)
    except RecursionError as e:
        raise UnsupportedTypeError(f"{type(value).__name__} nests too deeply to encode") from e


def _encode_as(shape: Optional[Shape], value: Any) -> bytes:
    if shape is Shape.HOOK:
        return call_marshaler(value)
    if shape is Shape.INTEGER:
        if not config.MIN_INTEGER <= value <= config.MAX_INTEGER:
            raise UnsupportedTypeError(
                f"Integer {value} does not fit in {config.INTEGER_BITS} bits")
        return encode_integer(value)
    if shape is Shape.TEXT:
        try:
            return encode_byte_string(value.encode(config.TEXT_ENCODING, config.KEY_ERRORS))
        except UnicodeEncodeError as e:
            raise UnsupportedTypeError(f"Text cannot be encoded as {config.TEXT_ENCODING}: {e}") from e
    if shape is Shape.BYTES:
        return encode_byte_string(bytes(value))
    if shape is Shape.SEQUENCE:
        return encode_list(value)
    if shape is Shape.MAPPING:
        return encode_dictionary(value)
    if shape is Shape.RECORD:
        return encode_record(value)
    if shape is Shape.REFERENCE:
        if value.value is None:
            raise UnsupportedTypeError("Cannot encode an empty Ref")
        return marshal(value.value)

    raise UnsupportedTypeError(f"Unsupported type for bencode: {type(value).__name__}")


def decode_generic(data: bytes, offset: int) -> Tuple[Value, int]:
    """
    Decode the value at offset without a destination type.

    Integers come back as int, byte strings as bytes, lists as list and
    dictionaries as dict with str keys.
    """
    kind = peek_kind(data, offset)
    if kind is Kind.INTEGER:
        return decode_integer(data, offset)
    if kind is Kind.LIST:
        return decode_list(data, offset)
    if kind is Kind.DICTIONARY:
        return decode_mapping(data, offset)
    return decode_byte_string(data, offset)


def decode_value(data: bytes, offset: int, target: Any = Any) -> Tuple[Any, int]:
    """
    Decode the value at offset as an instance of target.

    Containers are decoded element by element straight from data, so decode
    hooks nested at any depth receive the input bytes of their own value.

    Args:
        data(bytes): encoded input
        offset(int): position of the value's first byte
        target(Any): destination type

    Returns:
        Tuple[Any, int]: the decoded value and the number of bytes consumed
    """
    try:
        return _decode_as(data, offset, target)
    except RecursionError as e:
        raise NestingTooDeepError("Containers nest too deeply to decode", offset) from e


def _decode_as(data: bytes, offset: int, target: Any) -> Tuple[Any, int]:
    if target is Any or target is object:
        return decode_generic(data, offset)

    origin = get_origin(target)
    args = get_args(target)

    if origin in UNIONS:
        return _decode_union(data, offset, args)

    if is_unmarshaler(target):
        return call_unmarshaler(target, data, offset)

    if is_record(target):
        return decode_record(data, offset, target)

    if origin in SEQUENCES:
        return decode_list(data, offset, args[0] if args else Any)

    if origin is tuple:
        if not args or (len(args) == 2 and args[1] is Ellipsis):
            items, consumed = decode_list(data, offset, args[0] if args else Any)
            return tuple(items), consumed
        return decode_array(data, offset, fixed_args(args))

    if origin in MAPPINGS:
        key_type, value_type = args if args else (Any, Any)
        result = {}
        return result, decode_dictionary(data, offset, result, value_type, key_type)

    value, consumed = decode_generic(data, offset)
    return rehydrate(value, target, offset), consumed


def _decode_union(data: bytes, offset: int, args: Tuple[Any, ...]) -> Tuple[Any, int]:
    arms = [arg for arg in args if arg is not type(None)]
    deepest = None
    for arm in arms:
        try:
            return decode_value(data, offset, arm)
        except TypeMismatchError as e:
            if deepest is None or (e.offset or 0) > (deepest.offset or 0):
                deepest = e

    # report the arm that got furthest into the value
    if deepest is not None and (deepest.offset or 0) > offset:
        raise deepest
    names = ', '.join(type_name(arm) for arm in arms)
    raise TypeMismatchError(f"Encoded value matches none of {names}", offset)


def _as_bytes(data: Any) -> bytes:
    if isinstance(data, str):
        raise TypeError('Argument "data" must be of type bytes')
    data = bytes(data)
    if not data:
        raise TruncatedBufferError("No data to decode", 0)
    return data


def unmarshal(data: bytes, destination: Any) -> int:
    """
    Decode the value at the start of data into destination.

    destination may be a Ref (the result is stored in Ref.value, converted to
    Ref.type), a dataclass instance or dict (filled in place), a list (extended)
    or a bytearray (replaced). Bytes after the first value are left alone.

    Args:
        data(bytes): encoded input
        destination(Any): where to store the decoded value

    Returns:
        int: number of bytes consumed
    """
    data = _as_bytes(data)

    if isinstance(destination, Ref):
        destination.value, consumed = decode_value(data, 0, destination.type)
        return consumed

    if is_record_instance(destination):
        if is_frozen(type(destination)):
            raise NotAReferenceError(f"{type(destination).__name__} is frozen", 0)
        return decode_dictionary(data, 0, destination)

    if isinstance(destination, MutableMapping):
        return decode_dictionary(data, 0, destination)

    if isinstance(destination, bytearray):
        raw, consumed = decode_byte_string(data, 0)
        destination[:] = raw
        return consumed

    if isinstance(destination, MutableSequence):
        items, consumed = decode_list(data, 0)
        destination.extend(items)
        return consumed

    raise NotAReferenceError(
        f"Cannot unmarshal into {type(destination).__name__}; "
        f"pass a Ref, dict, list, bytearray or dataclass instance", 0)


def encode(data: Any) -> bytes:
    """Helper function to encode data to bencode format"""
    return marshal(data)


def decode(data: bytes, cls: Any = Any) -> Any:
    """
    Helper function to decode exactly one bencoded value.

    Args:
        data(bytes): encoded input
        cls(Any): destination type, Any for the generic form

    Returns:
        Any: the decoded value
    """
    data = _as_bytes(data)
    value, consumed = decode_value(data, 0, cls)
    if consumed != len(data):
        raise BencodeError("Trailing data after bencoded value", consumed)
    return value
