import random
from typing import List, Optional

import pytest

from core.blob_codec import BlobCodec
from core.universe import NameUniverse
from repository.history_backend import HistoryBackend
from util.errors import ConflictError


class MemoryBackend(HistoryBackend):
    """In-process backend that records every call."""

    def __init__(self, blob: Optional[bytes] = None, *, shared: bool = False) -> None:
        self.blob = blob
        self.shared = shared
        self.reads = 0
        self.writes: List[bytes] = []
        self.fail_with: Optional[Exception] = None
        self.conflicts_left = 0

    def describe(self) -> str:
        return "memory"

    def read(self) -> Optional[bytes]:
        self.reads += 1
        return self.blob

    def write(self, data: bytes) -> None:
        if self.conflicts_left > 0:
            self.conflicts_left -= 1
            raise ConflictError("precondition failed")
        if self.fail_with is not None:
            raise self.fail_with
        self.writes.append(data)
        self.blob = data

    @property
    def io_calls(self) -> int:
        return self.reads + len(self.writes)


def make_universe(given: int = 5, family: int = 10) -> NameUniverse:
    """given * 2 * family names; the defaults give exactly 100."""
    return NameUniverse(
        [f"A{i}" for i in range(given)],
        [f"B{i}" for i in range(given)],
        [f"F{i}" for i in range(family)],
    )


@pytest.fixture
def universe() -> NameUniverse:
    return make_universe()


@pytest.fixture
def codec(universe) -> BlobCodec:
    return BlobCodec(universe)


@pytest.fixture
def seeded_rng_factory():
    seeds = iter(range(1000))
    return lambda: random.Random(next(seeds))
