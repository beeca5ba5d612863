# src/bencodec/__init__.py
from bencodec.codec import decode, decode_generic, decode_value, encode, marshal, unmarshal
from bencodec.errors import (
    ArrayOverflowError, BencodeError, MalformedIntegerError, MalformedLengthError,
    NestingTooDeepError, NotAReferenceError, TruncatedBufferError, TypeMismatchError,
    UnsupportedKeyTypeError, UnsupportedTypeError, UnterminatedContainerError,
)
from bencodec.fields import FieldSpec, bencode_field
from bencodec.hooks import Marshaler, Unmarshaler
from bencodec.rehydrate import rehydrate
from bencodec.stream import BencodeDecoder, BencodeEncoder
from bencodec.value import Kind, Ref, Value

__all__ = [
    "marshal", "unmarshal", "encode", "decode", "decode_value", "decode_generic", "rehydrate",
    "Ref", "Value", "Kind", "FieldSpec", "bencode_field", "Marshaler", "Unmarshaler",
    "BencodeEncoder", "BencodeDecoder",
    "BencodeError", "UnsupportedTypeError", "UnsupportedKeyTypeError", "MalformedIntegerError",
    "MalformedLengthError", "TruncatedBufferError", "UnterminatedContainerError",
    "TypeMismatchError", "ArrayOverflowError", "NotAReferenceError", "NestingTooDeepError",
]
