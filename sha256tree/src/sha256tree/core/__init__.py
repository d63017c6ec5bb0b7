"""In-memory hashing core: bounded buffers, byte-order packing and SHA-256."""

from .buffer import BoundsError, ByteBuffer, Cursor, Span
from .scalar import ByteOrderScalar, Endian, pack, unpack
from .sha256 import EngineState, Sha256, sha256

__all__ = [
    "BoundsError",
    "ByteBuffer",
    "ByteOrderScalar",
    "Cursor",
    "Endian",
    "EngineState",
    "Sha256",
    "Span",
    "pack",
    "sha256",
    "unpack",
]
