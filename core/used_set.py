# core/used_set.py
from typing import List, Optional

from util.errors import InternalConsistencyError


def byte_length(size: int) -> int:
    return (size + 7) // 8


class UsedSet:
    """
    Bit-vector over universe indices. Bit i lives in byte i // 8 at bit i % 8.

    Padding bits past `size` in the final byte are ignored by population
    and lookup.
    """

    __slots__ = ("_size", "_bits", "_population")

    def __init__(self, size: int, bits: Optional[bytes] = None) -> None:
        expected = byte_length(size)
        if bits is None:
            self._bits = bytearray(expected)
        else:
            if len(bits) != expected:
                raise InternalConsistencyError(
                    f"internal error: bitset size mismatch ({len(bits)} bytes, expected {expected})"
                )
            self._bits = bytearray(bits)
        self._size = size
        self._population = self._count()

    def _count(self) -> int:
        if not self._size:
            return 0
        value = int.from_bytes(self._bits, "little") & ((1 << self._size) - 1)
        return bin(value).count("1")

    def _check(self, index: int) -> None:
        if index < 0 or index >= self._size:
            raise IndexError(f"bit index {index} out of range (size {self._size})")

    @property
    def size(self) -> int:
        return self._size

    def get(self, index: int) -> bool:
        self._check(index)
        return bool((self._bits[index >> 3] >> (index & 7)) & 1)

    def set(self, index: int) -> None:
        self._check(index)
        mask = 1 << (index & 7)
        if not self._bits[index >> 3] & mask:
            self._bits[index >> 3] |= mask
            self._population += 1

    def population(self) -> int:
        return self._population

    def unused_indices(self) -> List[int]:
        bits = self._bits
        return [i for i in range(self._size) if not (bits[i >> 3] >> (i & 7)) & 1]

    def copy(self) -> "UsedSet":
        return UsedSet(self._size, bytes(self._bits))

    def to_bytes(self) -> bytes:
        return bytes(self._bits)

    def __len__(self) -> int:
        return len(self._bits)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UsedSet):
            return NotImplemented
        return self._size == other._size and self._bits == other._bits

    def __repr__(self) -> str:
        return f"UsedSet(size={self._size}, used={self._population})"
