import os

import pytest

from repository.file_history_repository import FileHistoryRepository
from util.errors import FormatError, StorageError


def test_missing_file_reads_as_absent(tmp_path) -> None:
    repo = FileHistoryRepository(str(tmp_path / "nope" / "history.bin"))
    assert repo.read() is None


def test_write_creates_parent_dirs(tmp_path) -> None:
    path = tmp_path / "a" / "b" / "history.bin"
    repo = FileHistoryRepository(str(path))
    repo.write(b"payload")
    assert path.read_bytes() == b"payload"
    assert repo.read() == b"payload"


def test_write_replaces_and_leaves_no_temp_files(tmp_path) -> None:
    path = tmp_path / "history.bin"
    repo = FileHistoryRepository(str(path))
    repo.write(b"first")
    repo.write(b"second")
    assert repo.read() == b"second"
    assert os.listdir(tmp_path) == ["history.bin"]


def test_empty_file_is_returned_as_empty_bytes(tmp_path) -> None:
    path = tmp_path / "history.bin"
    path.write_bytes(b"")
    assert FileHistoryRepository(str(path)).read() == b""


def test_oversized_file_is_rejected(tmp_path) -> None:
    path = tmp_path / "history.bin"
    path.write_bytes(b"x" * 11)
    with pytest.raises(FormatError):
        FileHistoryRepository(str(path), max_bytes=10).read()


def test_unwritable_parent_is_storage_error(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory", encoding="utf-8")
    repo = FileHistoryRepository(str(blocker / "history.bin"))
    with pytest.raises(StorageError):
        repo.write(b"data")


def test_capabilities() -> None:
    assert FileHistoryRepository.shared is False
    assert FileHistoryRepository.supports_conditional_write is False
