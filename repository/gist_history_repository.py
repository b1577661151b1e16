# repository/gist_history_repository.py
import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import status

from core.blob_codec import HEADER_SIZE
from core.text_codec import decode_text, encode_text
from repository.history_backend import HistoryBackend
from util.constants import ExternalURIs
from util.errors import ConfigError, ConflictError, NetworkError
from util.timing import timed

logger = logging.getLogger(__name__)

# Placeholder content a gist file is created with before first use.
UNINITIALIZED_SENTINEL = "init"

_CLASSIC_TOKEN_PREFIXES = ("ghp_", "gho_", "ghu_", "ghs_", "ghr_")


def auth_header(token: str) -> str:
    # Classic PATs use "token", fine-grained ones "Bearer".
    if token.startswith(_CLASSIC_TOKEN_PREFIXES):
        return f"token {token}"
    return f"Bearer {token}"


class GistHistoryRepository(HistoryBackend):
    """
    One file inside a GitHub Gist holding the blob as base64 text.

    The gist API has no conditional PATCH, so write() is an unconditional
    overwrite: two processes racing on the same gist resolve as last writer
    wins. Re-reading before each attempt narrows the window but cannot close it.
    """

    shared = True
    supports_conditional_write = False

    def __init__(
        self,
        gist_id: str,
        token: str,
        filename: str,
        *,
        api_url: str = ExternalURIs.GITHUB_API,
        timeout: float = 20.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        if not gist_id:
            raise ConfigError("HISTORY_GIST_ID is empty")
        if not token:
            raise ConfigError("HISTORY_GITHUB_TOKEN is empty")
        if not filename:
            raise ConfigError("HISTORY_GIST_FILENAME is empty")
        self._gist_id = gist_id
        self._filename = filename
        self._url = f"{api_url.rstrip('/')}{ExternalURIs.GISTS}/{gist_id}"
        self._headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": auth_header(token),
            "User-Agent": "RandomNameGenerator/1.0",
        }
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout))

    def describe(self) -> str:
        return f"gist:{self._gist_id}/{self._filename}"

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("history.gist.timeout method=%s", method)
            raise NetworkError(f"gist {method} timed out") from e
        except httpx.RequestError as e:
            logger.error("history.gist.request_error method=%s err=%s", method, type(e).__name__)
            raise NetworkError(f"gist {method} request failed: {e}") from e

    def _read_content(self) -> Optional[str]:
        with timed(logger, "history.gist.read"):
            res = self._request("GET", self._url)
        if res.status_code == status.HTTP_404_NOT_FOUND:
            raise ConfigError("gist not found (check HISTORY_GIST_ID)")
        if res.status_code // 100 != 2:
            logger.error("history.gist.get.bad_status status=%d", res.status_code)
            raise NetworkError(f"gist GET failed (HTTP {res.status_code})")

        try:
            payload: Dict[str, Any] = res.json()
        except ValueError as e:
            raise NetworkError("gist GET returned malformed JSON") from e

        entry = (payload.get("files") or {}).get(self._filename)
        if entry is None:
            return None
        if entry.get("truncated") and entry.get("raw_url"):
            raw = self._request("GET", entry["raw_url"])
            if raw.status_code // 100 != 2:
                raise NetworkError(f"gist raw content GET failed (HTTP {raw.status_code})")
            return raw.text
        return entry.get("content") or ""

    def read(self) -> Optional[bytes]:
        content = self._read_content()
        if content is None:
            logger.info("history.gist.file_missing file=%s", self._filename)
            return None
        content = content.strip()
        if not content or content == UNINITIALIZED_SENTINEL:
            return None
        blob = decode_text(content)
        if len(blob) < HEADER_SIZE:
            # Tiny junk left by hand-editing; treat as never initialized
            logger.warning("history.gist.too_small bytes=%d", len(blob))
            return None
        return blob

    def write(self, data: bytes) -> None:
        body = {"files": {self._filename: {"content": encode_text(data)}}}
        with timed(logger, "history.gist.write", bytes=len(data)):
            res = self._request("PATCH", self._url, json=body)
        if res.status_code == status.HTTP_412_PRECONDITION_FAILED:
            raise ConflictError("gist PATCH precondition failed (concurrent update)")
        if res.status_code // 100 != 2:
            detail = (res.text or "")[:500]
            logger.error("history.gist.patch.bad_status status=%d", res.status_code)
            message = f"gist PATCH failed (HTTP {res.status_code})"
            raise NetworkError(f"{message}: {detail}" if detail else message)
