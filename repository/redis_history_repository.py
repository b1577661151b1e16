# repository/redis_history_repository.py
import logging
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError, WatchError

from repository.history_backend import HistoryBackend
from repository.namespaces import HISTORY, blob_key, version_key
from util.errors import ConflictError, FormatError, NetworkError
from util.timing import timed

logger = logging.getLogger(__name__)


def _as_int(raw: Optional[bytes]) -> int:
    if raw is None:
        return 0
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    try:
        return int(raw)
    except ValueError as e:
        raise FormatError(f"history version is not an integer: {raw!r}") from e


class RedisHistoryRepository(HistoryBackend):
    """
    Blob stored as raw bytes next to a version counter.

    Flow:
    - read() fetches blob + version together and remembers the version seen.
    - write() WATCHes the version key; if it moved since read(), another
      process persisted first and ConflictError is raised. Otherwise the
      blob is replaced and the version bumped in one MULTI/EXEC.
    """

    shared = True
    supports_conditional_write = True

    def __init__(self, client: Redis, key_prefix: str = HISTORY) -> None:
        self._client = client
        self._prefix = key_prefix
        self._blob_key = blob_key(key_prefix)
        self._version_key = version_key(key_prefix)
        self._seen_version = 0

    def describe(self) -> str:
        return f"redis:{self._prefix}"

    def read(self) -> Optional[bytes]:
        try:
            with timed(logger, "history.redis.read"):
                blob, version = self._client.mget(self._blob_key, self._version_key)
        except RedisError as e:
            logger.error("history.redis.read.error err=%s", type(e).__name__)
            raise NetworkError(f"redis read failed: {e}") from e
        self._seen_version = _as_int(version)
        if not blob:
            return None
        return bytes(blob)

    def write(self, data: bytes) -> None:
        try:
            with timed(logger, "history.redis.write", bytes=len(data)):
                with self._client.pipeline() as pipe:
                    pipe.watch(self._version_key)
                    current = _as_int(pipe.get(self._version_key))
                    if current != self._seen_version:
                        raise ConflictError(
                            f"history version moved ({self._seen_version} -> {current}); precondition failed"
                        )
                    pipe.multi()
                    pipe.set(self._blob_key, data)
                    pipe.incr(self._version_key)
                    _, new_version = pipe.execute()
        except WatchError as e:
            raise ConflictError("history changed during write; precondition failed") from e
        except RedisError as e:
            logger.error("history.redis.write.error err=%s", type(e).__name__)
            raise NetworkError(f"redis write failed: {e}") from e
        self._seen_version = int(new_version)
