"""Memory-mapped file storage backend."""

from __future__ import annotations

import logging
import mmap
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class MMapStorage:
    """Byte-oriented backend that copies documents through a memory-mapped region."""

    extension = ".json"

    def read(self, path: str) -> Optional[bytes]:
        try:
            handle = open(path, "rb")
        except FileNotFoundError:
            return None
        with handle:
            size = os.fstat(handle.fileno()).st_size
            if size == 0:
                return b""
            with mmap.mmap(handle.fileno(), 0, access=mmap.ACCESS_READ) as region:
                data = bytes(region)
        logger.debug("Mapped %d bytes from %s", len(data), path)
        return data

    def write(self, path: str, data: bytes) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(target.name + ".tmp")
        try:
            with open(tmp, "w+b") as handle:
                handle.truncate(len(data))
                # zero-length files cannot be mapped
                if data:
                    with mmap.mmap(
                        handle.fileno(), len(data), access=mmap.ACCESS_WRITE
                    ) as region:
                        region[:] = data
                        region.flush()
            os.replace(tmp, target)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        logger.debug("Mapped %d bytes to %s", len(data), path)

    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    def delete(self, path: str) -> None:
        Path(path).unlink(missing_ok=True)
