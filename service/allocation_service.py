# service/allocation_service.py
import logging
import os
import random
import time
from typing import Callable, List, Optional

from config.settings import Settings
from core.blob_codec import BlobCodec
from core.universe import DEFAULT_MAX_BATCH, NameUniverse, default_universe
from core.used_set import UsedSet
from repository.backend_factory import build_backend
from repository.history_backend import HistoryBackend
from util.enums import StoreState
from util.errors import (
    ConflictError,
    ExhaustionError,
    HistoryError,
    InternalConsistencyError,
    InvalidCountError,
    NotReadyError,
    RetryExhaustedError,
)

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 3

RngFactory = Callable[[], random.Random]


def fresh_rng() -> random.Random:
    # OS entropy mixed with two clocks so rapid successive calls never share a seed.
    seed = int.from_bytes(os.urandom(16), "little")
    seed ^= time.perf_counter_ns() ^ (time.time_ns() << 64)
    return random.Random(seed)


class AllocationStore:
    """
    Hands out names that were never handed out before by this deployment.

    Flow:
    - initialize(): load the persisted history (or claim an empty one).
    - allocate(n): pick n unused indices at random, mark them, persist, and
      only then return the names. A batch is either fully recorded or not at
      all.

    Not thread-safe: callers must serialize allocate() on one instance.
    """

    def __init__(
        self,
        universe: NameUniverse,
        backend: HistoryBackend,
        *,
        codec: Optional[BlobCodec] = None,
        max_batch: int = DEFAULT_MAX_BATCH,
        attempts: int = DEFAULT_ATTEMPTS,
        rng_factory: RngFactory = fresh_rng,
    ) -> None:
        self._universe = universe
        self._backend = backend
        self._codec = codec or BlobCodec(universe)
        self._max_batch = int(max_batch)
        self._attempts = max(1, int(attempts))
        self._rng_factory = rng_factory
        self._used: Optional[UsedSet] = None
        self._state = StoreState.UNINITIALIZED
        self._last_error: Optional[HistoryError] = None

    @classmethod
    def from_settings(
        cls, cfg: Settings, universe: Optional[NameUniverse] = None
    ) -> "AllocationStore":
        universe = universe or default_universe()
        return cls(
            universe,
            build_backend(cfg),
            codec=BlobCodec(universe, cfg.HISTORY_ZLIB_LEVEL),
            max_batch=cfg.MAX_BATCH,
            attempts=cfg.HISTORY_MAX_ATTEMPTS,
        )

    # ---------------- State ----------------

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state == StoreState.READY

    @property
    def last_error(self) -> Optional[HistoryError]:
        return self._last_error

    @property
    def backend(self) -> HistoryBackend:
        return self._backend

    @property
    def max_batch(self) -> int:
        return self._max_batch

    def used_count(self) -> int:
        return self._used.population() if self._used is not None else 0

    def total_capacity(self) -> int:
        return self._universe.size()

    def remaining(self) -> int:
        if not self.ready:
            return 0
        left = self._universe.size() - self.used_count()
        return max(0, min(left, self._max_batch))

    # ---------------- Lifecycle ----------------

    def initialize(self) -> None:
        if self.ready:
            return
        if self._state == StoreState.ERROR and self._last_error is not None:
            raise self._last_error
        self._state = StoreState.LOADING
        try:
            self._used = self._load_or_claim()
        except HistoryError as e:
            self._state = StoreState.ERROR
            self._last_error = e
            logger.error(
                "history.init.failed backend=%s err=%s", self._backend.describe(), e.message
            )
            raise
        self._state = StoreState.READY
        self._last_error = None
        logger.info(
            "history.init.ok total=%d used=%d remaining=%d backend=%s",
            self.total_capacity(),
            self.used_count(),
            self.remaining(),
            self._backend.describe(),
        )

    def close(self) -> None:
        self._backend.close()

    # ---------------- Allocation ----------------

    def allocate(self, count: int) -> List[str]:
        if count < 1 or count > self._max_batch:
            raise InvalidCountError(
                f"count must be an integer between 1 and {self._max_batch}"
            )
        if not self.ready:
            raise NotReadyError("history store not initialized")

        for attempt in range(1, self._attempts + 1):
            if self._backend.shared:
                loaded = self._load()
                self._used = loaded if loaded is not None else self._codec.empty()
            current = self._used
            if current is None:
                raise InternalConsistencyError("internal error: history not loaded")

            left = self._universe.size() - current.population()
            if count > left:
                logger.warning("history.allocate.exhausted requested=%d left=%d", count, left)
                raise ExhaustionError(max(0, left))

            pool = current.unused_indices()
            self._rng_factory().shuffle(pool)
            picked = pool[:count]

            candidate = current.copy()
            for idx in picked:
                candidate.set(idx)
            names = [self._universe.name_at(idx) for idx in picked]

            try:
                self._persist(candidate)
            except ConflictError as e:
                logger.warning(
                    "history.allocate.conflict attempt=%d/%d err=%s",
                    attempt,
                    self._attempts,
                    e.message,
                )
                continue

            self._used = candidate
            logger.info(
                "history.allocate.ok count=%d used=%d attempt=%d",
                count,
                candidate.population(),
                attempt,
            )
            return names

        logger.error("history.allocate.retries_exhausted attempts=%d", self._attempts)
        raise RetryExhaustedError("could not persist history (concurrent updates); please retry")

    # ---------------- Persistence ----------------

    def _load_or_claim(self) -> UsedSet:
        for attempt in range(1, self._attempts + 1):
            used = self._load()
            if used is not None:
                return used
            used = self._codec.empty()
            # Claim the store right away so the next reader sees a real blob
            try:
                self._persist(used)
            except ConflictError as e:
                # Someone else claimed it first; their blob is read next time round.
                logger.warning(
                    "history.init.conflict attempt=%d/%d err=%s",
                    attempt,
                    self._attempts,
                    e.message,
                )
                continue
            logger.info("history.init.fresh backend=%s", self._backend.describe())
            return used
        raise RetryExhaustedError("could not claim history store (concurrent updates); please retry")

    def _load(self) -> Optional[UsedSet]:
        blob = self._backend.read()
        if blob is None:
            return None
        return self._codec.decode(blob)

    def _persist(self, used: UsedSet) -> None:
        self._backend.write(self._codec.encode(used))
