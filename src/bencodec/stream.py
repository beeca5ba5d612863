# src/bencodec/stream.py
from typing import Any, BinaryIO

from bencodec.codec import marshal, unmarshal


class BencodeEncoder:
    """Writes bencoded values to a binary stream"""

    def __init__(self, writer: BinaryIO):
        self.writer = writer

    def encode(self, value: Any) -> None:
        """Encode value and write it out; nothing is written if encoding fails"""
        self.writer.write(marshal(value))


class BencodeDecoder:
    """Reads a bencoded value from a binary stream"""

    def __init__(self, reader: BinaryIO):
        self.reader = reader

    def decode(self, destination: Any) -> int:
        """
        Read the rest of the stream and unmarshal its first value into destination.

        Args:
            destination(Any): Ref, dict, list, bytearray or dataclass instance

        Returns:
            int: number of bytes the value occupied
        """
        return unmarshal(self.reader.read(), destination)
