import pytest

from config.settings import Settings
from repository.backend_factory import build_backend, resolve_kind
from repository.file_history_repository import FileHistoryRepository
from repository.gist_history_repository import GistHistoryRepository
from repository.redis_history_repository import RedisHistoryRepository
from service.allocation_service import AllocationStore
from util.enums import BackendKind
from util.errors import ConfigError


def _settings(**overrides) -> Settings:
    base = {
        "HISTORY_BACKEND": "auto",
        "HISTORY_FILE": "data/history.bin",
        "HISTORY_GIST_ID": "",
        "HISTORY_GITHUB_TOKEN": "",
        "HISTORY_REDIS_URL": "",
    }
    base.update(overrides)
    return Settings(**base)


def test_auto_defaults_to_file(tmp_path) -> None:
    cfg = _settings(HISTORY_FILE=str(tmp_path / "h.bin"))
    backend = build_backend(cfg)
    assert isinstance(backend, FileHistoryRepository)
    assert backend.path == tmp_path / "h.bin"


def test_auto_prefers_gist_when_fully_configured() -> None:
    cfg = _settings(HISTORY_GIST_ID="abc", HISTORY_GITHUB_TOKEN="tok", HISTORY_REDIS_URL="redis://x")
    assert resolve_kind(cfg) == BackendKind.GIST
    backend = build_backend(cfg)
    assert isinstance(backend, GistHistoryRepository)
    backend.close()


@pytest.mark.parametrize(
    "overrides", [{"HISTORY_GIST_ID": "abc"}, {"HISTORY_GITHUB_TOKEN": "tok"}]
)
def test_half_configured_gist_is_config_error(overrides) -> None:
    with pytest.raises(ConfigError):
        resolve_kind(_settings(**overrides))


def test_auto_uses_redis_url() -> None:
    assert resolve_kind(_settings(HISTORY_REDIS_URL="redis://localhost:6379/0")) == BackendKind.REDIS


def test_explicit_redis_uses_given_client() -> None:
    cfg = _settings(HISTORY_BACKEND="redis", HISTORY_REDIS_KEY="x:history")
    backend = build_backend(cfg, redis_client=object())
    assert isinstance(backend, RedisHistoryRepository)
    assert backend.describe() == "redis:x:history"


def test_explicit_redis_without_url_is_config_error() -> None:
    with pytest.raises(ConfigError):
        build_backend(_settings(HISTORY_BACKEND="redis"))


def test_explicit_gist_without_id_is_config_error() -> None:
    with pytest.raises(ConfigError):
        build_backend(_settings(HISTORY_BACKEND="gist", HISTORY_GITHUB_TOKEN="tok"))


def test_store_from_settings(tmp_path, universe) -> None:
    cfg = _settings(
        HISTORY_FILE=str(tmp_path / "h.bin"), MAX_BATCH=7, HISTORY_ZLIB_LEVEL=9
    )
    store = AllocationStore.from_settings(cfg, universe)
    store.initialize()
    assert store.max_batch == 7
    assert store.remaining() == 7
    assert (tmp_path / "h.bin").exists()
