# repository/history_backend.py
from abc import ABC, abstractmethod
from typing import Optional


class HistoryBackend(ABC):
    """
    Durable home for exactly one history blob.

    Flow:
    - read() returns the latest blob, or None when nothing has been stored yet.
    - write() replaces it as one atomic operation.
    - `shared`: other processes may write the same state, so callers re-read
      before every allocation attempt.
    - `supports_conditional_write`: a concurrent write between read() and
      write() is detected and raised as ConflictError. Backends without it are
      last-writer-wins.
    """

    shared: bool = False
    supports_conditional_write: bool = False

    @abstractmethod
    def read(self) -> Optional[bytes]: ...

    @abstractmethod
    def write(self, data: bytes) -> None: ...

    @abstractmethod
    def describe(self) -> str: ...

    def close(self) -> None:
        return None
