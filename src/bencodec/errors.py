# src/bencodec/errors.py
from typing import Optional


class BencodeError(ValueError):
    """Base class for every codec failure.

    Args:
        message(str): human readable description
        offset(Optional[int]): byte offset in the input at which the problem was detected
    """

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.offset = offset

    def __str__(self) -> str:
        if self.offset is None:
            return self.message
        return f"{self.message} (at offset {self.offset})"


class UnsupportedTypeError(BencodeError, TypeError):
    """Value has no bencode representation."""


class UnsupportedKeyTypeError(BencodeError, TypeError):
    """Dictionary key is not textual."""


class MalformedIntegerError(BencodeError):
    pass


class MalformedLengthError(BencodeError):
    pass


class TruncatedBufferError(BencodeError):
    """Declared length or terminator runs past the end of the data."""


class UnterminatedContainerError(BencodeError):
    pass


class TypeMismatchError(BencodeError, TypeError):
    """Decoded wire shape does not fit the destination type."""


class ArrayOverflowError(BencodeError):
    """More elements than a fixed-size destination can hold."""


class NotAReferenceError(BencodeError, TypeError):
    """Destination passed to unmarshal() cannot be written to."""


class NestingTooDeepError(BencodeError):
    """Containers nest deeper than the interpreter can recurse."""
