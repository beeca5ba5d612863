# src/bencodec/hooks.py
import logging
from abc import ABC, abstractmethod
from typing import Any, Tuple, get_origin

from bencodec.errors import BencodeError


def _implements(cls: type, method: str) -> bool:
    for klass in cls.__mro__:
        if method in klass.__dict__:
            return klass.__dict__[method] is not None
    return False


class Marshaler(ABC):
    """Values that produce their own bencoded form.

    Any class with a `to_bencode` method counts, subclassing is optional.
    Returning b'' from a dictionary entry or record field drops it from the output.
    """

    @abstractmethod
    def to_bencode(self) -> bytes:
        pass

    @classmethod
    def __subclasshook__(cls, C):
        if cls is Marshaler:
            return _implements(C, 'to_bencode')
        return NotImplemented


class Unmarshaler(ABC):
    """Types that build themselves from bencoded data.

    `from_bencode` receives the data starting at the value and returns the new
    instance together with the number of bytes it consumed.
    """

    @classmethod
    @abstractmethod
    def from_bencode(cls, data: bytes) -> Tuple[Any, int]:
        pass

    @classmethod
    def __subclasshook__(cls, C):
        if cls is Unmarshaler:
            return _implements(C, 'from_bencode')
        return NotImplemented


def is_unmarshaler(target: Any) -> bool:
    return (isinstance(target, type) and get_origin(target) is None
            and issubclass(target, Unmarshaler))


def call_marshaler(value: Any) -> bytes:
    """Run a value's encode hook and check what it hands back"""
    logging.debug(f"Delegating encode of {type(value).__name__} to its to_bencode hook")
    encoded = value.to_bencode()
    if not isinstance(encoded, (bytes, bytearray)):
        raise BencodeError(
            f"{type(value).__name__}.to_bencode returned {type(encoded).__name__}, expected bytes")
    return bytes(encoded)


def call_unmarshaler(target: type, data: bytes, offset: int) -> Tuple[Any, int]:
    """
    Run a type's decode hook on the value starting at offset.

    Args:
        target(type): the Unmarshaler type
        data(bytes): complete encoded input
        offset(int): position of the value

    Returns:
        Tuple[Any, int]: the decoded instance and the number of bytes consumed
    """
    logging.debug(f"Delegating decode at offset {offset} to {target.__name__}.from_bencode")
    try:
        value, consumed = target.from_bencode(data[offset:])
    except BencodeError as e:
        if e.offset is not None:
            e.offset += offset
        raise

    if not isinstance(consumed, int) or not 0 < consumed <= len(data) - offset:
        raise BencodeError(
            f"{target.__name__}.from_bencode reported {consumed!r} bytes consumed", offset)
    return value, consumed
