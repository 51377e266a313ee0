"""Where the agent keeps its on-disk state (currently only the content cache)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "reunite"
HTTP_CACHE_FILENAME: Final[str] = "content_cache.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    http_cache_filename: str = HTTP_CACHE_FILENAME

    def http_cache_path(self, *, ensure: bool = True) -> Path:
        """Sqlite file backing the content-store HTTP cache."""

        base = self.data_dir.expanduser().resolve()
        if ensure:
            base.mkdir(parents=True, exist_ok=True)
        return base / self.http_cache_filename


def get_storage_config() -> StorageConfig:
    explicit = os.getenv("REUNITE_DATA_DIR")
    if explicit:
        return StorageConfig(data_dir=Path(explicit))
    xdg_data_home = os.getenv("XDG_DATA_HOME")
    base = Path(xdg_data_home) if xdg_data_home else Path.home() / ".local" / "share"
    return StorageConfig(data_dir=base / APP_DIR_NAME)
