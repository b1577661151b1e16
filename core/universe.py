# core/universe.py
import random
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

from core.name_lists import FAMILY_NAMES, GIVEN_NAMES_A, GIVEN_NAMES_B, SEPARATOR

FNV_OFFSET_BASIS = 14695981039346656037
FNV_PRIME = 1099511628211
_MASK_64 = (1 << 64) - 1

# 0xFF never occurs in UTF-8, so it cannot collide with name bytes.
NAME_SEPARATOR_BYTE = 0xFF

DEFAULT_MAX_BATCH = 5000


class NameUniverse:
    """
    Ordered, immutable list of every full name the service can hand out.

    Index order is: every given name of list A combined with every family
    name, then the same for list B. Indices are what the history bit-vector
    tracks, so the order must never change for a live deployment.
    """

    def __init__(
        self,
        given_a: Sequence[str],
        given_b: Sequence[str],
        family: Sequence[str],
    ) -> None:
        names: List[str] = []
        for givens in (given_a, given_b):
            for first in givens:
                for last in family:
                    names.append(f"{first}{SEPARATOR}{last}")

        seen = set()
        for name in names:
            if name in seen:
                raise ValueError(f"duplicate name in universe: {name!r}")
            seen.add(name)

        self._names: Tuple[str, ...] = tuple(names)
        self._fingerprint: Optional[int] = None

    def size(self) -> int:
        return len(self._names)

    def name_at(self, index: int) -> str:
        if index < 0 or index >= len(self._names):
            raise IndexError(
                f"name index {index} out of range (universe size {len(self._names)})"
            )
        return self._names[index]

    def fingerprint(self) -> int:
        """
        64-bit FNV-1a over each name's UTF-8 bytes followed by a 0xFF separator,
        so ["ab", "c"] and ["a", "bc"] hash differently.
        """
        if self._fingerprint is None:
            h = FNV_OFFSET_BASIS
            for name in self._names:
                for b in name.encode("utf-8"):
                    h = ((h ^ b) * FNV_PRIME) & _MASK_64
                h = ((h ^ NAME_SEPARATOR_BYTE) * FNV_PRIME) & _MASK_64
            self._fingerprint = h
        return self._fingerprint

    def sample(
        self,
        count: int,
        max_batch: int = DEFAULT_MAX_BATCH,
        rng: Optional[random.Random] = None,
    ) -> List[str]:
        """
        Stateless draw of `count` distinct names. Nothing is recorded, so two
        calls may overlap; use the allocation store for global uniqueness.
        """
        if count <= 0 or count > max_batch or count > len(self._names):
            return []
        rng = rng or random.Random()
        return rng.sample(self._names, count)

    def __len__(self) -> int:
        return len(self._names)


@lru_cache(maxsize=1)
def default_universe() -> NameUniverse:
    return NameUniverse(GIVEN_NAMES_A, GIVEN_NAMES_B, FAMILY_NAMES)
