"""Streaming SHA-256 (FIPS 180-4).

Bytes may arrive in any chunking; the digest only depends on the byte
sequence. Section references below point into FIPS 180-4.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Final

from sha256tree.core.buffer import ByteBuffer
from sha256tree.core.scalar import U32, U64, ByteOrderScalar, Endian, pack, unpack

logger = logging.getLogger(__name__)

BLOCK_SIZE: Final[int] = 64
DIGEST_SIZE: Final[int] = 32
LENGTH_FIELD_SIZE: Final[int] = U64
SCHEDULE_WORDS: Final[int] = 64
BLOCK_WORDS: Final[int] = BLOCK_SIZE // U32

_MASK32: Final[int] = 0xFFFFFFFF
_MASK64: Final[int] = 0xFFFFFFFFFFFFFFFF

# 5.3.3
INITIAL_HASH: Final[tuple[int, ...]] = (
    0x6A09E667, 0xBB67AE85, 0x3C6EF372, 0xA54FF53A,
    0x510E527F, 0x9B05688C, 0x1F83D9AB, 0x5BE0CD19,
)

# 4.2.2
ROUND_CONSTANTS: Final[tuple[int, ...]] = (
    0x428A2F98, 0x71374491, 0xB5C0FBCF, 0xE9B5DBA5, 0x3956C25B, 0x59F111F1, 0x923F82A4, 0xAB1C5ED5,
    0xD807AA98, 0x12835B01, 0x243185BE, 0x550C7DC3, 0x72BE5D74, 0x80DEB1FE, 0x9BDC06A7, 0xC19BF174,
    0xE49B69C1, 0xEFBE4786, 0x0FC19DC6, 0x240CA1CC, 0x2DE92C6F, 0x4A7484AA, 0x5CB0A9DC, 0x76F988DA,
    0x983E5152, 0xA831C66D, 0xB00327C8, 0xBF597FC7, 0xC6E00BF3, 0xD5A79147, 0x06CA6351, 0x14292967,
    0x27B70A85, 0x2E1B2138, 0x4D2C6DFC, 0x53380D13, 0x650A7354, 0x766A0ABB, 0x81C2C92E, 0x92722C85,
    0xA2BFE8A1, 0xA81A664B, 0xC24B8B70, 0xC76C51A3, 0xD192E819, 0xD6990624, 0xF40E3585, 0x106AA070,
    0x19A4C116, 0x1E376C08, 0x2748774C, 0x34B0BCB5, 0x391C0CB3, 0x4ED8AA4A, 0x5B9CCA4F, 0x682E6FF3,
    0x748F82EE, 0x78A5636F, 0x84C87814, 0x8CC70208, 0x90BEFFFA, 0xA4506CEB, 0xBEF9A3F7, 0xC67178F2,
)


class EngineState(str, Enum):
    READY = "ready"
    ACCUMULATING = "accumulating"
    FINALIZED = "finalized"


def _rotr(x: int, n: int) -> int:
    return ((x >> n) | (x << (32 - n))) & _MASK32


def _ch(x: int, y: int, z: int) -> int:
    return (x & y) ^ (~x & z)


def _maj(x: int, y: int, z: int) -> int:
    return (x & y) ^ (x & z) ^ (y & z)


def _big_sigma0(x: int) -> int:
    return _rotr(x, 2) ^ _rotr(x, 13) ^ _rotr(x, 22)


def _big_sigma1(x: int) -> int:
    return _rotr(x, 6) ^ _rotr(x, 11) ^ _rotr(x, 25)


def _sigma0(x: int) -> int:
    return _rotr(x, 7) ^ _rotr(x, 18) ^ (x >> 3)


def _sigma1(x: int) -> int:
    return _rotr(x, 17) ^ _rotr(x, 19) ^ (x >> 10)


def _byte_view(data: bytes | bytearray | memoryview) -> memoryview:
    view = memoryview(data)
    if not view.c_contiguous:
        # strided views cannot be cast in place
        view = memoryview(view.tobytes())
    return view.cast("B")


class Sha256:
    """Incremental SHA-256 engine.

    The engine moves through three states: ``READY`` after construction or
    ``reset()``, ``ACCUMULATING`` once any byte has been absorbed, and
    ``FINALIZED`` after ``finalize()``/``hash()``. Feeding more input to a
    finalized engine restarts it, so the next digest covers only the bytes
    added after the restart. Call ``reset()`` to restart explicitly.
    """

    block_size = BLOCK_SIZE
    digest_size = DIGEST_SIZE
    name = "sha256"

    def __init__(self) -> None:
        self._hash_words: list[int] = list(INITIAL_HASH)
        self._message = [ByteOrderScalar(0, U32, Endian.BIG) for _ in range(BLOCK_WORDS)]
        self._buffered = 0
        self._total = 0
        self._finished = False
        self._digest = ByteBuffer(DIGEST_SIZE)
        self.reset()

    @property
    def state(self) -> EngineState:
        if self._finished:
            return EngineState.FINALIZED
        if self.payload_length() == 0:
            return EngineState.READY
        return EngineState.ACCUMULATING

    def payload_length(self) -> int:
        return self._total + self._buffered

    def reset(self) -> "Sha256":
        self._finished = False
        self._total = 0
        self._buffered = 0
        self._digest.clear()
        self._hash_words[:] = INITIAL_HASH
        return self

    def _restart_if_finalized(self) -> None:
        if self._finished:
            logger.debug("restarting finalized sha256 engine after %d bytes", self.payload_length())
            self.reset()

    def add_byte(self, byte: int) -> None:
        self._restart_if_finalized()
        self._absorb(byte)

    def _absorb(self, byte: int) -> None:
        # 6.2.2 step 1: message words are filled in place, big-endian
        self._message[self._buffered // U32].set_byte(byte, self._buffered % U32)
        self._buffered += 1
        if self._buffered < BLOCK_SIZE:
            return
        self.process_block()
        self._total += BLOCK_SIZE
        self._buffered = 0

    def add_block(self, block: bytes | bytearray | memoryview) -> None:
        self._restart_if_finalized()
        view = _byte_view(block)
        if self._buffered == 0 and len(view) == BLOCK_SIZE:
            for index, word in enumerate(self._message):
                word.value = unpack(view[index * U32:(index + 1) * U32], Endian.BIG)
            self.process_block()
            self._total += BLOCK_SIZE
            return
        for byte in view:
            self._absorb(byte)

    def update(self, data: bytes | bytearray | memoryview) -> "Sha256":
        """Absorb ``data`` of any length, using whole-block loads where aligned."""

        self._restart_if_finalized()
        view = _byte_view(data)
        offset = 0
        while self._buffered and offset < len(view):
            self._absorb(view[offset])
            offset += 1
        while len(view) - offset >= BLOCK_SIZE:
            self.add_block(view[offset:offset + BLOCK_SIZE])
            offset += BLOCK_SIZE
        for byte in view[offset:]:
            self._absorb(byte)
        return self

    def process_block(self) -> None:
        # 6.2.2 step 1: message schedule
        w = [word.value for word in self._message]
        for i in range(BLOCK_WORDS, SCHEDULE_WORDS):
            w.append((_sigma1(w[i - 2]) + w[i - 7] + _sigma0(w[i - 15]) + w[i - 16]) & _MASK32)

        a, b, c, d, e, f, g, h = self._hash_words
        for i in range(SCHEDULE_WORDS):
            t1 = (h + _big_sigma1(e) + _ch(e, f, g) + ROUND_CONSTANTS[i] + w[i]) & _MASK32
            t2 = (_big_sigma0(a) + _maj(a, b, c)) & _MASK32
            h, g, f, e, d, c, b, a = g, f, e, (d + t1) & _MASK32, c, b, a, (t1 + t2) & _MASK32

        for i, value in enumerate((a, b, c, d, e, f, g, h)):
            self._hash_words[i] = (self._hash_words[i] + value) & _MASK32

    def _pad(self) -> None:
        # 5.1.1: 0x80, zeros up to 56 mod 64, then the 64-bit bit length
        bit_length = (self.payload_length() * 8) & _MASK64
        self._absorb(0x80)
        if self._buffered > BLOCK_SIZE - LENGTH_FIELD_SIZE:
            while self._buffered:
                self._absorb(0)
        while self._buffered < BLOCK_SIZE - LENGTH_FIELD_SIZE:
            self._absorb(0)
        for byte in pack(bit_length, U64, Endian.BIG):
            self._absorb(byte)

    def finalize(self) -> None:
        if self._finished:
            return
        length = self.payload_length()
        self._pad()
        self._digest.clear()
        for word in self._hash_words:
            self._digest.write(pack(word, U32, Endian.BIG))
        # padding bytes are not payload
        self._total = length
        self._buffered = 0
        self._finished = True

    def hash(self) -> memoryview:
        """Finalize and return a read-only view of the 32-byte digest.

        The view aliases engine storage and is cleared by the next restart;
        use ``digest()`` for a copy that outlives the engine's reuse.
        """

        self.finalize()
        return self._digest.reader()

    def digest(self) -> bytes:
        return self.hash().tobytes()

    def hexdigest(self) -> str:
        return self.hash().hex()

    def __repr__(self) -> str:
        return f"<Sha256 state={self.state.value} length={self.payload_length()}>"


def sha256(data: bytes | bytearray | memoryview = b"") -> Sha256:
    return Sha256().update(data)


__all__ = [
    "BLOCK_SIZE",
    "DIGEST_SIZE",
    "EngineState",
    "INITIAL_HASH",
    "ROUND_CONSTANTS",
    "Sha256",
    "sha256",
]
