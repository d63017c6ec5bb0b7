"""Fixed-width integer packing in an explicit byte order."""

from __future__ import annotations

from enum import Enum
from typing import Final

from sha256tree.core.buffer import BoundsError

U32: Final[int] = 4
U64: Final[int] = 8


class Endian(Enum):
    BIG = "big"
    LITTLE = "little"


def byte_shift(index: int, width: int, endian: Endian) -> int:
    """Bit position occupied by byte ``index`` of a ``width``-byte value."""

    if not 0 <= index < width:
        raise BoundsError(f"byte index {index} outside [0, {width})")
    if endian is Endian.LITTLE:
        return 8 * index
    return 8 * (width - 1 - index)


def _check_value(value: int, width: int) -> None:
    if value < 0 or value >> (8 * width):
        raise ValueError(f"value {value:#x} does not fit in {width} bytes")


def pack(value: int, width: int, endian: Endian) -> bytes:
    _check_value(value, width)
    return bytes((value >> byte_shift(i, width, endian)) & 0xFF for i in range(width))


def unpack(data: bytes | bytearray | memoryview, endian: Endian) -> int:
    width = len(data)
    value = 0
    for i, byte in enumerate(data):
        value |= byte << byte_shift(i, width, endian)
    return value


class ByteOrderScalar:
    """A ``width``-byte integer addressable one byte at a time."""

    __slots__ = ("value", "width", "endian")

    def __init__(self, value: int = 0, width: int = U32, endian: Endian = Endian.BIG) -> None:
        _check_value(value, width)
        self.value = value
        self.width = width
        self.endian = endian

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview, endian: Endian) -> "ByteOrderScalar":
        return cls(unpack(data, endian), len(data), endian)

    def get_byte(self, index: int) -> int:
        return (self.value >> byte_shift(index, self.width, self.endian)) & 0xFF

    def set_byte(self, byte: int, index: int) -> None:
        if not 0 <= byte <= 0xFF:
            raise ValueError(f"byte value out of range: {byte}")
        shift = byte_shift(index, self.width, self.endian)
        self.value = (self.value & ~(0xFF << shift)) | (byte << shift)

    def to_bytes(self) -> bytes:
        return pack(self.value, self.width, self.endian)

    def __int__(self) -> int:
        return self.value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ByteOrderScalar):
            return NotImplemented
        return (self.value, self.width, self.endian) == (other.value, other.width, other.endian)

    def __repr__(self) -> str:
        return f"ByteOrderScalar({self.value:#x}, width={self.width}, endian={self.endian.name})"


__all__ = ["ByteOrderScalar", "Endian", "U32", "U64", "byte_shift", "pack", "unpack"]
