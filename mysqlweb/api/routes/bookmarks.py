"""
Bookmark Routes - Saved connection profiles.

Endpoints:
- GET /api/bookmarks: List bookmarks
- POST /api/bookmarks/{name}: Save a bookmark (form fields host, port, user, database)
- DELETE /api/bookmarks/{name}: Delete a bookmark
"""
from typing import Optional

from fastapi import APIRouter, Depends, Form, Response

from mysqlweb.api.dependencies import get_bookmark_store
from mysqlweb.core.logging_config import get_logger
from mysqlweb.models.schemas import Bookmark, BookmarkConnection, BookmarkListResponse, ErrorResponse
from mysqlweb.services.bookmark_service import BookmarkStore, parse_port

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/bookmarks",
    tags=["Bookmarks"],
    responses={400: {"model": ErrorResponse}},
)


@router.get(
    "",
    response_model=BookmarkListResponse,
    summary="List bookmarks",
)
def list_bookmarks(store: BookmarkStore = Depends(get_bookmark_store)) -> BookmarkListResponse:
    return BookmarkListResponse(bookmarks=store.list())


@router.post(
    "/{name}",
    status_code=204,
    response_class=Response,
    summary="Save a bookmark",
    description="Fails with `already_exists` when a bookmark with this name is saved already.",
)
def save_bookmark(
    name: str,
    host: str = Form(default=""),
    port: Optional[str] = Form(default=None),
    user: str = Form(default=""),
    database: str = Form(default=""),
    store: BookmarkStore = Depends(get_bookmark_store),
) -> Response:
    bookmark = Bookmark(
        name=name,
        conn_info=BookmarkConnection(
            host=host,
            port=parse_port(port),
            username=user,
            database=database,
        ),
    )
    store.save(bookmark)
    return Response(status_code=204)


@router.delete(
    "/{name}",
    status_code=204,
    response_class=Response,
    summary="Delete a bookmark",
)
def delete_bookmark(name: str, store: BookmarkStore = Depends(get_bookmark_store)) -> Response:
    store.delete(name)
    return Response(status_code=204)
