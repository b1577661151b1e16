import pytest

from core.used_set import UsedSet, byte_length
from util.errors import InternalConsistencyError


def test_new_set_is_empty() -> None:
    used = UsedSet(100)
    assert len(used) == 13
    assert used.population() == 0
    assert used.unused_indices() == list(range(100))


def test_set_is_idempotent() -> None:
    used = UsedSet(20)
    used.set(3)
    used.set(3)
    used.set(19)
    assert used.get(3) and used.get(19)
    assert not used.get(4)
    assert used.population() == 2
    assert 3 not in used.unused_indices()
    assert len(used.unused_indices()) == 18


def test_bit_layout_is_lsb_first() -> None:
    used = UsedSet(16)
    used.set(0)
    used.set(9)
    assert used.to_bytes() == bytes([0b0000_0001, 0b0000_0010])


def test_population_recounted_from_bytes() -> None:
    used = UsedSet(10, bytes([0xFF, 0b0000_0011]))
    assert used.population() == 10
    assert used.unused_indices() == []


def test_padding_bits_are_ignored() -> None:
    # size 10 -> bits 10..15 of byte 1 are padding
    used = UsedSet(10, bytes([0x00, 0xFC]))
    assert used.population() == 0


def test_wrong_byte_length_is_fatal() -> None:
    with pytest.raises(InternalConsistencyError):
        UsedSet(100, bytes(12))


def test_out_of_range_index() -> None:
    used = UsedSet(8)
    with pytest.raises(IndexError):
        used.set(8)
    with pytest.raises(IndexError):
        used.get(-1)


def test_copy_is_independent() -> None:
    used = UsedSet(8)
    clone = used.copy()
    clone.set(1)
    assert used.population() == 0
    assert clone.population() == 1
    assert used != clone


def test_byte_length() -> None:
    assert byte_length(0) == 0
    assert byte_length(1) == 1
    assert byte_length(8) == 1
    assert byte_length(9) == 2
