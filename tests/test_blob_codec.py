import struct
import zlib

import pytest

from core.blob_codec import HEADER, HEADER_SIZE, MAGIC, BlobCodec
from core.universe import NameUniverse
from core.used_set import UsedSet
from util.errors import (
    BadMagicError,
    BlobTooShortError,
    CompressedLengthMismatchError,
    CompressionError,
    DecompressedLengthMismatchError,
    FormatError,
    InternalConsistencyError,
    RawLengthMismatchError,
    UniverseFingerprintMismatchError,
    UniverseSizeMismatchError,
    UnsupportedVersionError,
)


def _used(universe, *indices) -> UsedSet:
    used = UsedSet(universe.size())
    for i in indices:
        used.set(i)
    return used


def _blob(universe, *, version=1, size=None, fp=None, raw_len=None, payload=None, comp_len=None):
    raw = bytes((universe.size() + 7) // 8)
    payload = zlib.compress(raw) if payload is None else payload
    header = HEADER.pack(
        MAGIC,
        version,
        universe.size() if size is None else size,
        universe.fingerprint() if fp is None else fp,
        len(raw) if raw_len is None else raw_len,
        len(payload) if comp_len is None else comp_len,
    )
    return header + payload


def test_header_layout(universe, codec) -> None:
    blob = codec.encode(_used(universe, 1, 2, 3))
    assert HEADER_SIZE == 26
    assert blob[:5] == b"RNGZ1"
    assert blob[5] == 1
    size, fp, raw_len, comp_len = struct.unpack_from("<IQII", blob, 6)
    assert size == 100
    assert fp == universe.fingerprint()
    assert raw_len == 13
    assert comp_len == len(blob) - HEADER_SIZE


def test_round_trip(universe, codec) -> None:
    used = _used(universe, 0, 7, 8, 50, 99)
    decoded = codec.decode(codec.encode(used))
    assert decoded == used
    assert decoded.population() == 5


@pytest.mark.parametrize("level", [1, 9])
def test_level_changes_size_not_content(universe, level) -> None:
    used = _used(universe, *range(0, 100, 3))
    assert BlobCodec(universe).decode(BlobCodec(universe, level).encode(used)) == used


def test_invalid_level_falls_back(universe) -> None:
    assert BlobCodec(universe, 0).level == 6
    assert BlobCodec(universe, 12).level == 6


def test_encode_rejects_foreign_bitset(codec) -> None:
    with pytest.raises(InternalConsistencyError):
        codec.encode(UsedSet(64))


def test_decode_too_short(codec) -> None:
    with pytest.raises(BlobTooShortError):
        codec.decode(b"RNGZ1\x01")


def test_decode_wrong_magic(universe, codec) -> None:
    blob = b"XXXXX" + _blob(universe)[5:]
    with pytest.raises(BadMagicError):
        codec.decode(blob)


def test_decode_unsupported_version(universe, codec) -> None:
    with pytest.raises(UnsupportedVersionError):
        codec.decode(_blob(universe, version=2))


def test_decode_universe_size_changed(universe, codec) -> None:
    with pytest.raises(UniverseSizeMismatchError):
        codec.decode(_blob(universe, size=99))


def test_decode_fingerprint_changed_with_same_size(universe, codec) -> None:
    renamed = NameUniverse(
        [f"Z{i}" for i in range(5)],
        [f"B{i}" for i in range(5)],
        [f"F{i}" for i in range(10)],
    )
    assert renamed.size() == universe.size()
    blob = BlobCodec(renamed).encode(UsedSet(renamed.size()))
    with pytest.raises(UniverseFingerprintMismatchError):
        codec.decode(blob)


def test_decode_raw_len_mismatch(universe, codec) -> None:
    with pytest.raises(RawLengthMismatchError):
        codec.decode(_blob(universe, raw_len=12))


@pytest.mark.parametrize("delta", [-1, 1])
def test_decode_comp_len_mismatch(universe, codec, delta) -> None:
    blob = _blob(universe)
    with pytest.raises(CompressedLengthMismatchError):
        codec.decode(_blob(universe, comp_len=len(blob) - HEADER_SIZE + delta))


def test_decode_trailing_garbage(universe, codec) -> None:
    with pytest.raises(CompressedLengthMismatchError):
        codec.decode(codec.encode(UsedSet(universe.size())) + b"\x00")


def test_decode_corrupt_payload(universe, codec) -> None:
    with pytest.raises(CompressionError):
        codec.decode(_blob(universe, payload=b"not zlib at all"))


def test_decode_payload_of_wrong_length(universe, codec) -> None:
    with pytest.raises(DecompressedLengthMismatchError):
        codec.decode(_blob(universe, payload=zlib.compress(bytes(5))))
    with pytest.raises(DecompressedLengthMismatchError):
        codec.decode(_blob(universe, payload=zlib.compress(bytes(500))))


def test_errors_are_format_errors() -> None:
    for kind in (BlobTooShortError, BadMagicError, UniverseSizeMismatchError):
        assert issubclass(kind, FormatError)


def test_decode_stream_missing_checksum(universe, codec) -> None:
    # Inflates to the right length but the adler32 trailer is gone.
    payload = zlib.compress(bytes(13))[:-4]
    with pytest.raises(CompressionError):
        codec.decode(_blob(universe, payload=payload))


def test_decode_junk_after_stream_end(universe, codec) -> None:
    payload = zlib.compress(bytes(13)) + b"JUNKJUNK"
    with pytest.raises(CompressionError):
        codec.decode(_blob(universe, payload=payload))
