# repository/backend_factory.py
import logging
from typing import Optional

from redis import Redis

from config.cache import get_redis
from config.settings import Settings
from repository.file_history_repository import FileHistoryRepository
from repository.gist_history_repository import GistHistoryRepository
from repository.history_backend import HistoryBackend
from repository.redis_history_repository import RedisHistoryRepository
from util.enums import BackendKind
from util.errors import ConfigError

logger = logging.getLogger(__name__)


def resolve_kind(cfg: Settings) -> BackendKind:
    """
    auto: gist when both gist id and token are set, else redis when a URL is
    set, else the local file. A half-configured gist is an error rather than a
    silent fallback to a file that may not survive a redeploy.
    """
    kind = BackendKind(cfg.HISTORY_BACKEND)
    if kind != BackendKind.AUTO:
        return kind

    has_id = bool(cfg.HISTORY_GIST_ID)
    has_token = bool(cfg.HISTORY_GITHUB_TOKEN)
    if has_id and has_token:
        return BackendKind.GIST
    if has_id or has_token:
        missing = "HISTORY_GITHUB_TOKEN" if has_id else "HISTORY_GIST_ID"
        raise ConfigError(f"{missing} is required when using the gist history backend")
    if cfg.HISTORY_REDIS_URL:
        return BackendKind.REDIS
    return BackendKind.FILE


def build_backend(cfg: Settings, redis_client: Optional[Redis] = None) -> HistoryBackend:
    kind = resolve_kind(cfg)
    logger.info("history.backend.selected kind=%s", kind.value)

    if kind == BackendKind.GIST:
        return GistHistoryRepository(
            cfg.HISTORY_GIST_ID,
            cfg.HISTORY_GITHUB_TOKEN,
            cfg.HISTORY_GIST_FILENAME,
            api_url=cfg.GITHUB_API_URL,
            timeout=cfg.HTTP_TIMEOUT_SECONDS,
        )
    if kind == BackendKind.REDIS:
        if redis_client is None:
            if not cfg.HISTORY_REDIS_URL:
                raise ConfigError("HISTORY_REDIS_URL is required for the redis history backend")
            redis_client = get_redis(cfg.HISTORY_REDIS_URL)
        return RedisHistoryRepository(redis_client, cfg.HISTORY_REDIS_KEY)
    if not cfg.HISTORY_FILE:
        raise ConfigError("HISTORY_FILE is empty")
    return FileHistoryRepository(cfg.HISTORY_FILE, cfg.MAX_HISTORY_FILE_BYTES)
