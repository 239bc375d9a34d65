"""Plain file storage backend for the default JSON document."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class FileStorage:
    """Byte-oriented backend that keeps one document per file.

    Writes go to a sibling temporary file first and are moved into place,
    so a crash never leaves a half-written document behind.
    """

    extension = ".json"

    def read(self, path: str) -> Optional[bytes]:
        try:
            data = Path(path).read_bytes()
        except FileNotFoundError:
            return None
        logger.debug("Read %d bytes from %s", len(data), path)
        return data

    def write(self, path: str, data: bytes) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(target.name + ".tmp")
        try:
            tmp.write_bytes(data)
            os.replace(tmp, target)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        logger.debug("Wrote %d bytes to %s", len(data), path)

    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    def delete(self, path: str) -> None:
        Path(path).unlink(missing_ok=True)
