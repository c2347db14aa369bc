"""
Streamed ZIP packaging of generated files.
"""
import zipfile
from typing import Any, Dict, Iterator

from errors import ArchiveError
from logging_config import logger


class _ChunkSink:
    """Write-only, non-seekable target that hands back what was written"""

    def __init__(self):
        self._buffer = bytearray()

    def write(self, data) -> int:
        self._buffer.extend(data)
        return len(data)

    def flush(self):
        pass

    def drain(self) -> bytes:
        chunk = bytes(self._buffer)
        self._buffer.clear()
        return chunk


def _check_name(name: str) -> str:
    if not name.strip("/"):
        raise ArchiveError("Failed to create ZIP", detail=f"Invalid entry name {name!r}")
    return name


def _entry_bytes(name: str, content: Any) -> bytes:
    if not content:
        return b""
    if not isinstance(content, str):
        raise ArchiveError(
            "Failed to create ZIP",
            detail=f"Entry {name!r} is not text ({type(content).__name__})",
        )
    return content.encode("utf-8")


def iter_zip(files: Dict[str, Any]) -> Iterator[bytes]:
    """
    Yield a ZIP archive of ``files`` one entry at a time.

    Each key becomes an entry name and each value its UTF-8 content; falsy
    values become empty entries.

    Raises:
        ArchiveError: an entry cannot be written
    """
    sink = _ChunkSink()
    try:
        with zipfile.ZipFile(sink, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
            for name, content in files.items():
                archive.writestr(_check_name(name), _entry_bytes(name, content))
                chunk = sink.drain()
                if chunk:
                    yield chunk
    except ArchiveError as e:
        logger.error("Archive error", error=e.message, detail=e.detail)
        raise
    except (OSError, ValueError, IndexError, TypeError, zipfile.BadZipFile) as e:
        logger.error("Archive error", error=str(e))
        raise ArchiveError("Failed to create ZIP", detail=str(e)) from e

    tail = sink.drain()
    if tail:
        yield tail
