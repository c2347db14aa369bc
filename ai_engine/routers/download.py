"""
Bundle download API router
"""
from itertools import chain
from fastapi import APIRouter, Body
from fastapi.responses import StreamingResponse
from typing import Any, Dict

from errors import InvalidInput
from logging_config import logger
from services.archive_builder import iter_zip

router = APIRouter()

ARCHIVE_NAME = "site.zip"


@router.post("/download")
def download_site(data: Dict[str, Any] = Body(...)):
    """
    Package files as a ZIP download.

    Request body: {"files": {"name": "content", ...}}

    The first entry is built before the response starts so early failures
    still produce a JSON error; later failures abort the stream.
    """
    files = data.get("files")
    if not isinstance(files, dict):
        raise InvalidInput("Missing files object in body.")

    logger.info("Download requested", entries=len(files))

    chunks = iter_zip(files)
    first = next(chunks, b"")

    return StreamingResponse(
        chain([first], chunks),
        media_type="application/zip",
        headers={"Content-Disposition": f"attachment; filename={ARCHIVE_NAME}"},
    )
