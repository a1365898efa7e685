"""Load upload bytes into a :class:`RawFile` without blocking the event loop."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import BinaryIO, Union

from excelflow.core.errors import FailureKind, IngestionFailure
from excelflow.domain import RawFile

logger = logging.getLogger(__name__)

READ_ERROR_MESSAGE = "An error occurred while reading the file."

Source = Union[Path, BinaryIO]


def _read(source: Source) -> bytes:
    if isinstance(source, Path):
        return source.read_bytes()
    source.seek(0)
    return source.read()


async def load_raw_file(source: Source, filename: str, content_type: str | None = None) -> RawFile | IngestionFailure:
    """Read ``source`` completely; I/O faults become ``ReadFailure`` values."""

    try:
        content = await asyncio.to_thread(_read, source)
    except (OSError, ValueError) as exc:
        # ValueError: reading from a closed stream
        logger.warning("failed to read %s: %s", filename, exc)
        return IngestionFailure(kind=FailureKind.READ_FAILURE, message=READ_ERROR_MESSAGE, filename=filename)
    return RawFile(filename=Path(filename).name, content=bytes(content or b""), content_type=content_type or "")
