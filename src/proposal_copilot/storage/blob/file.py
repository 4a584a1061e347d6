"""
File-backed blob storage.

Each blob is a ``<key>.json`` file in one directory. Writes go to a
temporary file in the same directory which then replaces the target, so a
crash or a concurrent writer never leaves a truncated file.
"""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class FileBlobStore:
    """Directory-of-JSON-files implementation of the BlobStore protocol."""

    def __init__(self, directory: Union[str, Path]):
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)

        logger.info(f"FileBlobStore initialized (directory={self._directory})")

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, key: str) -> Path:
        # Session ids come from clients; keep them inside the directory
        safe_key = _UNSAFE_KEY_CHARS.sub("_", key)
        return self._directory / f"{safe_key}.json"

    def load(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def save(self, key: str, data: str) -> None:
        path = self._path_for(key)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._directory, prefix=f".{path.stem}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug(f"Saved blob {key} to {path}")

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        if not path.exists():
            return False

        path.unlink()
        logger.debug(f"Deleted blob {key}")
        return True
