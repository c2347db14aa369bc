"""
Site generation and preview API router
"""
from fastapi import APIRouter, Body, Request
from fastapi.responses import HTMLResponse
from pydantic import BaseModel
from typing import Any, Dict

from errors import InvalidInput, MissingMarkup
from logging_config import logger
from services.llm_response_handler import LLMResponseHandler
from services.preview_renderer import render_preview

router = APIRouter()


class GenerateResponse(BaseModel):
    """Response model for a generated bundle"""
    files: Dict[str, str]


@router.post("/generate", response_model=GenerateResponse)
async def generate_site(request: Request, data: Dict[str, Any] = Body(...)):
    """
    Generate a static site bundle from a prompt.

    Request body: {"prompt": "..."}

    Returns {"files": {"index.html", "styles.css", "script.js"}}.
    """
    service = request.app.state.bundle_service
    bundle = await service.generate(data.get("prompt"))
    return GenerateResponse(files=bundle.to_files())


@router.post("/preview", response_class=HTMLResponse)
async def preview_site(data: Dict[str, Any] = Body(...)):
    """
    Render a bundle as one self-contained HTML page for iframe preview.

    Request body: {"files": {"index.html": ..., "styles.css": ..., "script.js": ...}}
    """
    files = data.get("files")
    if not isinstance(files, dict):
        raise InvalidInput("Missing files object in body.")

    try:
        bundle = LLMResponseHandler.to_bundle(files)
    except MissingMarkup as e:
        raise InvalidInput(f"{e.message}; got keys: {', '.join(e.keys) or 'none'}")

    html = render_preview(bundle)
    logger.info("Preview rendered", size=len(html))
    return HTMLResponse(content=html)
