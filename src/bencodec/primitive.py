# src/bencodec/primitive.py
import re
from typing import Tuple

from bencodec import config
from bencodec.errors import MalformedIntegerError, MalformedLengthError, TruncatedBufferError
from bencodec.value import TOKEN_END, TOKEN_INTEGER, TOKEN_STRING_SEPARATOR

_INTEGER = re.compile(rb'0|-?[1-9][0-9]*')
_LENGTH = re.compile(rb'(0|[1-9][0-9]*):')
_DIGITS = re.compile(rb'[0-9]*')


def encode_integer(value: int) -> bytes:
    """Encode an integer as i<decimal>e"""
    return TOKEN_INTEGER + str(int(value)).encode('ascii') + TOKEN_END


def encode_byte_string(data: bytes) -> bytes:
    """Encode raw bytes as <length>:<bytes>"""
    return str(len(data)).encode('ascii') + TOKEN_STRING_SEPARATOR + data


def decode_integer(data: bytes, offset: int) -> Tuple[int, int]:
    """
    Decode a bencoded integer starting at offset.

    Args:
        data(bytes): encoded input
        offset(int): position of the leading 'i'

    Returns:
        Tuple[int, int]: the integer and the number of bytes consumed
    """
    if data[offset:offset + 1] != TOKEN_INTEGER:
        raise MalformedIntegerError("Expected 'i' at start of integer", offset)

    end = data.find(TOKEN_END, offset + 1)
    if end == -1:
        raise TruncatedBufferError("Unterminated integer", offset)

    digits = data[offset + 1:end]
    if not _INTEGER.fullmatch(digits):
        raise MalformedIntegerError(f"Invalid integer format: {digits!r}", offset + 1)

    value = int(digits)
    if not config.MIN_INTEGER <= value <= config.MAX_INTEGER:
        raise MalformedIntegerError(
            f"Integer {value} does not fit in {config.INTEGER_BITS} bits", offset + 1)

    return value, end + 1 - offset


def decode_byte_string(data: bytes, offset: int) -> Tuple[bytes, int]:
    """
    Decode a length-prefixed byte string starting at offset.

    Args:
        data(bytes): encoded input
        offset(int): position of the first length digit

    Returns:
        Tuple[bytes, int]: a copy of the string's bytes and the number of bytes consumed
    """
    match = _LENGTH.match(data, offset)
    if match is None:
        # Only digits up to the end of the data: the length itself was cut off
        if _DIGITS.match(data, offset).end() == len(data):
            raise TruncatedBufferError("Unterminated string length", offset)
        raise MalformedLengthError("Invalid string length", offset)

    start = match.end()
    length = int(match.group(1))
    if start + length > len(data):
        raise TruncatedBufferError(
            f"String of length {length} exceeds data bounds", offset)

    return bytes(data[start:start + length]), start + length - offset
