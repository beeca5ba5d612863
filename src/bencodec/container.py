# src/bencodec/container.py
import logging
from array import array
from typing import Any, Callable, Dict, Iterable, List, Mapping, MutableMapping, Tuple

from bencodec import config
from bencodec.errors import (
    ArrayOverflowError, TypeMismatchError, UnsupportedKeyTypeError, UnterminatedContainerError,
)
from bencodec.fields import is_record_instance, is_zero, record_fields, resolve
from bencodec.primitive import decode_byte_string, encode_byte_string
from bencodec.rehydrate import build_record, rehydrate_key, zero_value
from bencodec.value import TOKEN_DICT, TOKEN_END, TOKEN_LIST

BYTE_SEQUENCES = (bytes, bytearray, memoryview)


def is_byte_sequence(items: Any) -> bool:
    """Sequences of 8-bit values, which encode as one byte string rather than a list"""
    if isinstance(items, BYTE_SEQUENCES):
        return True
    return isinstance(items, array) and items.itemsize == 1


def encode_list(items: Iterable[Any]) -> bytes:
    """Encode a sequence to bencode format, each element through marshal()"""
    if is_byte_sequence(items):
        return encode_byte_string(bytes(items))

    from bencodec.codec import marshal
    return TOKEN_LIST + b''.join(marshal(item) for item in items) + TOKEN_END


def _key_bytes(key: Any) -> bytes:
    if isinstance(key, str):
        return key.encode(config.TEXT_ENCODING, config.KEY_ERRORS)
    if isinstance(key, bytes):
        return key
    raise UnsupportedKeyTypeError(
        f"Dictionary keys must be str or bytes, not {type(key).__name__}")


def encode_dictionary(mapping: Mapping[Any, Any]) -> bytes:
    """
    Encode a mapping to bencode format.

    Keys are sorted by their raw bytes. Entries whose value is None, or whose
    value encodes to nothing, are left out.

    Args:
        mapping(Mapping[Any, Any]): str or bytes keys to encodable values

    Returns:
        bytes: the encoded dictionary
    """
    entries = {}
    for key, value in mapping.items():
        raw = _key_bytes(key)
        if raw in entries:
            raise UnsupportedKeyTypeError(f"Dictionary key {raw!r} appears more than once")
        entries[raw] = value

    from bencodec.codec import marshal
    parts = [TOKEN_DICT]
    for raw in sorted(entries):
        value = entries[raw]
        if value is None:
            continue
        encoded = marshal(value)
        if not encoded:
            continue
        parts.append(encode_byte_string(raw))
        parts.append(encoded)
    parts.append(TOKEN_END)
    return b''.join(parts)


def encode_record(record: Any) -> bytes:
    """Encode a dataclass instance as a dictionary keyed by wire names"""
    entries = {}
    for spec in record_fields(type(record)):
        if spec.omit:
            continue
        value = getattr(record, spec.name)
        if spec.omit_if_default and is_zero(value):
            continue
        entries[spec.wire_name] = value
    return encode_dictionary(entries)


def _walk_list(data: bytes, offset: int, on_element: Callable[[int, int], int]) -> int:
    """Call on_element(position, index) per element; it returns the bytes it consumed"""
    if data[offset:offset + 1] != TOKEN_LIST:
        raise TypeMismatchError("Expected a list", offset)

    index = offset + 1  # Skip past 'l'
    position = 0
    while index < len(data):
        if data[index:index + 1] == TOKEN_END:
            return index + 1 - offset

        index += on_element(position, index)
        position += 1

    raise UnterminatedContainerError("Unterminated list", offset)


def _walk_dictionary(data: bytes, offset: int, on_entry: Callable[[str, int], int]) -> int:
    """Call on_entry(key, index) per entry; it returns the bytes the value took"""
    if data[offset:offset + 1] != TOKEN_DICT:
        raise TypeMismatchError("Expected a dictionary", offset)

    index = offset + 1  # Skip past 'd'
    while index < len(data):
        if data[index:index + 1] == TOKEN_END:
            return index + 1 - offset

        raw_key, consumed = decode_byte_string(data, index)
        index += consumed
        if index >= len(data):
            break

        index += on_entry(raw_key.decode(config.TEXT_ENCODING, config.KEY_ERRORS), index)

    raise UnterminatedContainerError("Unterminated dictionary", offset)


def decode_list(data: bytes, offset: int, element_type: Any = Any) -> Tuple[List[Any], int]:
    """
    Decode a bencoded list starting at offset.

    Every element is decoded from its own position in data as element_type,
    which keeps the generic form when left as Any.

    Args:
        data(bytes): encoded input
        offset(int): position of the leading 'l'
        element_type(Any): type every element is decoded as

    Returns:
        Tuple[List[Any], int]: the elements and the number of bytes consumed
    """
    from bencodec.codec import decode_value
    result = []

    def append(position: int, index: int) -> int:
        value, consumed = decode_value(data, index, element_type)
        result.append(value)
        return consumed

    return result, _walk_list(data, offset, append)


def decode_array(data: bytes, offset: int, element_types: Tuple[Any, ...]) -> Tuple[tuple, int]:
    """Decode a list into a fixed-size tuple, one type per position"""
    from bencodec.codec import decode_value
    result = []

    def fill(position: int, index: int) -> int:
        if position >= len(element_types):
            raise ArrayOverflowError(
                f"More than {len(element_types)} elements for a fixed-size array", index)
        value, consumed = decode_value(data, index, element_types[position])
        result.append(value)
        return consumed

    consumed = _walk_list(data, offset, fill)
    # missing trailing elements keep their zero value
    result.extend(zero_value(element_type) for element_type in element_types[len(result):])
    return tuple(result), consumed


def decode_fields(data: bytes, offset: int, cls: type) -> Tuple[Dict[str, Any], int]:
    """
    Decode a dictionary into field values of the dataclass cls.

    Each key is resolved to a field and its value decoded from data as the
    field type, so decode hooks at any depth see the input bytes. Keys
    without a field are dropped.

    Returns:
        Tuple[Dict[str, Any], int]: attribute name to value, and the number of bytes consumed
    """
    from bencodec.codec import decode_value
    values = {}

    def store(key: str, index: int) -> int:
        spec = resolve(cls, key)
        if spec is None:
            logging.debug(f"Dropping key {key!r} with no matching field in {cls.__name__}")
            _, consumed = decode_value(data, index)
            return consumed
        value, consumed = decode_value(data, index, spec.type)
        values[spec.name] = value
        return consumed

    return values, _walk_dictionary(data, offset, store)


def decode_record(data: bytes, offset: int, cls: type) -> Tuple[Any, int]:
    """Decode a dictionary into a fresh instance of the dataclass cls"""
    values, consumed = decode_fields(data, offset, cls)
    return build_record(cls, values), consumed


def decode_dictionary(data: bytes, offset: int, destination: Any,
                      value_type: Any = Any, key_type: Any = Any) -> int:
    """
    Decode a bencoded dictionary starting at offset into destination.

    A mapping destination receives every entry, keys converted to key_type and
    values decoded as value_type. A dataclass destination has the entries
    matching its fields assigned once the whole dictionary has been read.

    Args:
        data(bytes): encoded input
        offset(int): position of the leading 'd'
        destination(Any): dict-like or dataclass instance, filled in place
        value_type(Any): type of mapping values
        key_type(Any): str, bytes or Any

    Returns:
        int: number of bytes consumed
    """
    if is_record_instance(destination):
        values, consumed = decode_fields(data, offset, type(destination))
        for name, value in values.items():
            setattr(destination, name, value)
        return consumed

    if not isinstance(destination, MutableMapping):
        raise TypeMismatchError(
            f"Cannot decode a dictionary into {type(destination).__name__}", offset)

    from bencodec.codec import decode_value

    def store(key: str, index: int) -> int:
        value, consumed = decode_value(data, index, value_type)
        destination[rehydrate_key(key, key_type, index)] = value
        return consumed

    return _walk_dictionary(data, offset, store)


def decode_mapping(data: bytes, offset: int) -> Tuple[Dict[str, Any], int]:
    """Decode a dictionary into a fresh generic dict"""
    result = {}
    consumed = decode_dictionary(data, offset, result)
    return result, consumed
