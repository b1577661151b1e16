# repository/namespaces.py
from typing import Final

ROOT: Final[str] = "namegen"

HISTORY: Final[str] = f"{ROOT}:history"


def blob_key(prefix: str) -> str:
    return f"{prefix}:blob"


def version_key(prefix: str) -> str:
    return f"{prefix}:version"
