# helper/codec.py
"""
Strict decoding on top of scalecodec.

scalecodec (the SCALE layer under substrate-interface) does the actual
encoding and decoding of integers, compact integers and byte arrays.
This module adds what a verifier needs and a general-purpose codec does
not enforce:

    - every read is bounds-checked before it reaches scalecodec, so
      truncation raises CodecError instead of yielding short values;
    - compact integers must use the shortest mode that fits the value,
      and may not be wider than the type they encode;
    - a sequence length may not exceed the bytes that remain, so a
      forged length prefix cannot trigger a huge allocation;
    - finish() rejects trailing bytes.
"""
from __future__ import annotations

from typing import Callable, List, TypeVar

from scalecodec.base import RuntimeConfigurationObject, ScaleBytes
from scalecodec.type_registry import load_type_registry_preset

from grandpa.errors import CodecError

T = TypeVar("T")

_RUNTIME = RuntimeConfigurationObject()
_RUNTIME.update_type_registry(load_type_registry_preset("legacy"))

_UINT_TYPES = {1: "u8", 2: "u16", 4: "u32", 8: "u64"}
_COMPACT_TYPES = {4: "Compact<u32>", 8: "Compact<u64>", 16: "Compact<u128>"}

# Compact integer modes (two low bits of the first byte).
_SINGLE_BYTE_MODE = 0b00
_TWO_BYTE_MODE = 0b01
_FOUR_BYTE_MODE = 0b10


def encode_compact(value: int) -> bytes:
    if value < 0:
        raise ValueError(f"compact integers are unsigned, got {value}")
    return bytes(_RUNTIME.create_scale_object(_COMPACT_TYPES[16]).encode(value).data)


def encode_uint(value: int, size: int) -> bytes:
    if value < 0 or value >= 1 << (8 * size):
        raise ValueError(f"value {value} does not fit in {size} bytes")
    return bytes(_RUNTIME.create_scale_object(_UINT_TYPES[size]).encode(value).data)


def encode_bytes(data: bytes) -> bytes:
    """Vec<u8>: compact length followed by the raw bytes."""
    return encode_compact(len(data)) + bytes(data)


def encode_seq(items: List[T], encode_item: Callable[[T], bytes]) -> bytes:
    return encode_compact(len(items)) + b"".join(encode_item(i) for i in items)


class ScaleReader:
    """
    Cursor over a scalecodec ScaleBytes buffer.

    Typical usage:

        reader = ScaleReader(raw)
        round_number = reader.read_uint(8)
        ...
        reader.finish()   # raises if trailing bytes remain
    """

    def __init__(self, data: bytes) -> None:
        self._data = ScaleBytes(bytearray(data))

    @property
    def remaining(self) -> int:
        return len(self._data.data) - self._data.offset

    def _require(self, size: int) -> None:
        if size > self.remaining:
            raise CodecError(
                f"need {size} bytes at offset {self._data.offset}, only {self.remaining} left"
            )

    def _decode(self, type_string: str) -> int:
        return _RUNTIME.create_scale_object(type_string, data=self._data).decode(check_remaining=False)

    def read_fixed(self, size: int) -> bytes:
        self._require(size)
        return bytes(self._data.get_next_bytes(size))

    def read_u8(self) -> int:
        return self.read_uint(1)

    def read_uint(self, size: int) -> int:
        self._require(size)
        return self._decode(_UINT_TYPES[size])

    def read_compact(self, max_bytes: int = 8) -> int:
        """
        Compact<uN> with N = 8 * max_bytes.

        Raises CodecError on truncation, on an encoding wider than the
        type, and on a non-canonical encoding.
        """
        self._require(1)
        first = self._data.data[self._data.offset]
        mode = first & 0b11
        if mode == _SINGLE_BYTE_MODE:
            size = 1
        elif mode == _TWO_BYTE_MODE:
            size = 2
        elif mode == _FOUR_BYTE_MODE:
            size = 4
        else:
            payload = (first >> 2) + 4
            if payload > max_bytes:
                raise CodecError(f"compact integer of {payload} bytes exceeds u{8 * max_bytes}")
            size = payload + 1
        self._require(size)

        value = self._decode(_COMPACT_TYPES[max_bytes])

        if mode == _TWO_BYTE_MODE and value < 1 << 6:
            raise CodecError("non-canonical compact integer (two-byte mode)")
        if mode == _FOUR_BYTE_MODE and value < 1 << 14:
            raise CodecError("non-canonical compact integer (four-byte mode)")
        # the most significant byte must be non-zero and the value must not
        # fit into the four-byte mode
        if size > 4 and (value < 1 << 30 or value >> (8 * (size - 2)) == 0):
            raise CodecError("non-canonical compact integer (big-integer mode)")
        return value

    def read_length(self) -> int:
        """Compact<u32> length prefix, bounded by the bytes that remain."""
        length = self.read_compact(max_bytes=4)
        if length > self.remaining:
            raise CodecError(
                f"sequence length {length} exceeds remaining input ({self.remaining} bytes)"
            )
        return length

    def read_bytes(self) -> bytes:
        return self.read_fixed(self.read_length())

    def read_seq(self, read_item: Callable[["ScaleReader"], T]) -> List[T]:
        return [read_item(self) for _ in range(self.read_length())]

    def read_option_tag(self) -> bool:
        tag = self.read_u8()
        if tag not in (0, 1):
            raise CodecError(f"invalid Option tag {tag}")
        return tag == 1

    def finish(self) -> None:
        if self.remaining:
            raise CodecError(f"{self.remaining} trailing bytes after decoding")
