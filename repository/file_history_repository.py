# repository/file_history_repository.py
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from repository.history_backend import HistoryBackend
from util.errors import FormatError, StorageError
from util.timing import timed

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 100 * 1024 * 1024


class FileHistoryRepository(HistoryBackend):
    """
    Single local file. Writes go to a sibling temp file that is fsynced and
    then renamed over the target, so readers never see a partial blob.
    """

    shared = False
    supports_conditional_write = False

    def __init__(self, path: str, max_bytes: int = DEFAULT_MAX_BYTES) -> None:
        self._path = Path(path)
        self._max_bytes = int(max_bytes)

    @property
    def path(self) -> Path:
        return self._path

    def describe(self) -> str:
        return f"file:{self._path}"

    def read(self) -> Optional[bytes]:
        try:
            size = self._path.stat().st_size
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"could not read history file size: {e}") from e

        if size > self._max_bytes:
            raise FormatError(f"history file too large ({size} bytes)")

        try:
            with timed(logger, "history.file.read", bytes=size):
                return self._path.read_bytes()
        except FileNotFoundError:
            # Removed between stat and open
            return None
        except OSError as e:
            raise StorageError(f"could not read history file: {e}") from e

    def write(self, data: bytes) -> None:
        parent = self._path.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"could not create history directory: {e}") from e

        try:
            fd, tmp = tempfile.mkstemp(
                dir=str(parent), prefix=f".{self._path.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise StorageError(f"could not open temp history file for writing: {e}") from e

        try:
            with timed(logger, "history.file.write", bytes=len(data)):
                with os.fdopen(fd, "wb") as out:
                    out.write(data)
                    out.flush()
                    os.fsync(out.fileno())
                os.replace(tmp, self._path)
        except OSError as e:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass
            raise StorageError(f"failed while writing history file: {e}") from e
