"""
Static Routes - Serve the bundled single-page front-end.
"""
from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse, PlainTextResponse, Response

from mysqlweb.core.logging_config import get_logger

logger = get_logger(__name__)

STATIC_DIR = Path(__file__).resolve().parent.parent.parent / "static"

MIME_TYPES = {
    ".css": "text/css",
    ".js": "application/javascript",
    ".ico": "image/x-icon",
    ".svg": "image/svg+xml",
    ".html": "text/html; charset=utf-8",
}

router = APIRouter(include_in_schema=False)


def _asset_response(relative_path: str) -> Response:
    file_path = (STATIC_DIR / relative_path).resolve()

    if not file_path.is_relative_to(STATIC_DIR) or not file_path.is_file():
        return PlainTextResponse("Asset not found", status_code=404)
    if file_path.stat().st_size == 0:
        return PlainTextResponse("Asset is empty", status_code=404)

    media_type = MIME_TYPES.get(file_path.suffix, "text/plain")
    return FileResponse(file_path, media_type=media_type)


@router.get("/")
def home() -> Response:
    return _asset_response("index.html")


@router.get("/static/{filepath:path}")
def serve_asset(filepath: str) -> Response:
    return _asset_response(filepath)
