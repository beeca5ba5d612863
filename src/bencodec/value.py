# src/bencodec/value.py
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from bencodec.errors import TruncatedBufferError

# Constants for bencode tokens
TOKEN_INTEGER = b'i'
TOKEN_LIST = b'l'
TOKEN_DICT = b'd'
TOKEN_END = b'e'
TOKEN_STRING_SEPARATOR = b':'

# Generic intermediate form produced when no destination type is known
Value = Union[int, bytes, List[Any], Dict[str, Any]]


class Kind(Enum):
    """The four kinds of value the wire format can carry."""
    INTEGER = 'integer'
    BYTE_STRING = 'byte string'
    LIST = 'list'
    DICTIONARY = 'dictionary'


_TAGS = {
    TOKEN_INTEGER: Kind.INTEGER,
    TOKEN_LIST: Kind.LIST,
    TOKEN_DICT: Kind.DICTIONARY,
}


def peek_kind(data: bytes, offset: int) -> Kind:
    """
    Look at the tag byte at offset and report which kind of value starts there.

    Byte strings carry no tag of their own, so anything that is not `i`, `l` or
    `d` is assumed to be a length prefix and left for the string decoder to reject.

    Args:
        data(bytes): encoded input
        offset(int): position of the tag byte

    Returns:
        Kind: kind of the value starting at offset
    """
    if offset >= len(data):
        raise TruncatedBufferError("Unexpected end of data", offset)
    return _TAGS.get(data[offset:offset + 1], Kind.BYTE_STRING)


def kind_of(value: Any) -> Optional[Kind]:
    """Classify a generic value, or return None if it is not one."""
    if isinstance(value, int):
        return Kind.INTEGER
    if isinstance(value, bytes):
        return Kind.BYTE_STRING
    if isinstance(value, list):
        return Kind.LIST
    if isinstance(value, dict):
        return Kind.DICTIONARY
    return None


class Ref:
    """
    A writable slot for unmarshal() to store its result in.

    Args:
        type_: destination type the decoded value is converted to (Any keeps the generic form)
        value: current contents of the slot
    """

    def __init__(self, type_: Any = Any, value: Any = None):
        self.type = type_
        self.value = value

    def __repr__(self) -> str:
        return f"Ref({self.type!r}, {self.value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ref):
            return NotImplemented
        return self.type == other.type and self.value == other.value
