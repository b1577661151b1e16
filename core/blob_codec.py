# core/blob_codec.py
import logging
import struct
import zlib
from typing import Final

from core.universe import NameUniverse
from core.used_set import UsedSet, byte_length
from util.errors import (
    BadMagicError,
    BlobTooShortError,
    CompressedLengthMismatchError,
    CompressionError,
    DecompressedLengthMismatchError,
    InternalConsistencyError,
    RawLengthMismatchError,
    UniverseFingerprintMismatchError,
    UniverseSizeMismatchError,
    UnsupportedVersionError,
)

logger = logging.getLogger(__name__)

MAGIC: Final[bytes] = b"RNGZ1"
VERSION: Final[int] = 1
DEFAULT_LEVEL: Final[int] = 6

# magic, version, universe_size u32, fingerprint u64, raw_len u32, comp_len u32
HEADER: Final[struct.Struct] = struct.Struct("<5sBIQII")
HEADER_SIZE: Final[int] = HEADER.size


def normalize_level(level: int) -> int:
    if 1 <= level <= 9:
        return level
    logger.warning("codec.level.invalid level=%s fallback=%d", level, DEFAULT_LEVEL)
    return DEFAULT_LEVEL


class BlobCodec:
    """
    Binary record for one UsedSet snapshot:

        magic(5) | version(1) | universe_size(4) | fingerprint(8)
        | raw_len(4) | comp_len(4) | zlib payload(comp_len)

    All integers little-endian. The universe size and fingerprint let a reader
    refuse history written against a different name list.
    """

    def __init__(self, universe: NameUniverse, level: int = DEFAULT_LEVEL) -> None:
        self._universe = universe
        self._level = normalize_level(level)

    @property
    def level(self) -> int:
        return self._level

    def expected_raw_len(self) -> int:
        return byte_length(self._universe.size())

    def empty(self) -> UsedSet:
        return UsedSet(self._universe.size())

    def encode(self, used: UsedSet) -> bytes:
        raw = used.to_bytes()
        if used.size != self._universe.size() or len(raw) != self.expected_raw_len():
            raise InternalConsistencyError("internal error: bitset size mismatch")
        try:
            payload = zlib.compress(raw, self._level)
        except zlib.error as e:
            raise CompressionError(f"history compress failed: {e}") from e
        header = HEADER.pack(
            MAGIC,
            VERSION,
            self._universe.size(),
            self._universe.fingerprint(),
            len(raw),
            len(payload),
        )
        return header + payload

    def decode(self, blob: bytes) -> UsedSet:
        if len(blob) < HEADER_SIZE:
            raise BlobTooShortError("history blob is corrupted (too small)")

        magic, version, size, fingerprint, raw_len, comp_len = HEADER.unpack_from(blob)
        if magic != MAGIC:
            raise BadMagicError("history blob has wrong magic")
        if version != VERSION:
            raise UnsupportedVersionError(f"history blob version {version} unsupported")
        if size != self._universe.size():
            raise UniverseSizeMismatchError(
                "history universe size mismatch (names list changed?)"
            )
        if fingerprint != self._universe.fingerprint():
            raise UniverseFingerprintMismatchError(
                "history universe fingerprint mismatch (names list changed?)"
            )
        expected = self.expected_raw_len()
        if raw_len != expected:
            raise RawLengthMismatchError(
                f"history raw length mismatch ({raw_len}, expected {expected})"
            )
        if HEADER_SIZE + comp_len != len(blob):
            raise CompressedLengthMismatchError(
                f"history compressed length mismatch ({comp_len} declared, "
                f"{len(blob) - HEADER_SIZE} present)"
            )

        d = zlib.decompressobj()
        try:
            # Cap output one byte past raw_len so a bogus payload cannot balloon.
            raw = d.decompress(blob[HEADER_SIZE:], raw_len + 1)
        except zlib.error as e:
            raise CompressionError(f"history decompress failed: {e}") from e
        if len(raw) == raw_len and (not d.eof or d.unused_data or d.unconsumed_tail):
            raise CompressionError("history decompress failed: truncated or trailing data")
        if len(raw) != raw_len:
            raise DecompressedLengthMismatchError(
                f"history decompressed length mismatch ({len(raw)}, expected {raw_len})"
            )
        return UsedSet(self._universe.size(), raw)
