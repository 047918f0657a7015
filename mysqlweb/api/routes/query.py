"""
Query Routes - Run user SQL against the current session.

The connection id comes from the X-CONN-ID header and falls back to the
``conn_id`` field when the header is absent, so plain HTML forms and
download links can submit queries too. ``?format=csv`` returns the result
as a CSV download instead of JSON.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Form, Query, Response
from fastapi.responses import JSONResponse

from mysqlweb.api.dependencies import get_conn_id, get_query_service
from mysqlweb.core.audit import ROW_COUNT_HEADER, ROWS_AFFECTED_HEADER
from mysqlweb.core.logging_config import get_logger
from mysqlweb.database.result import QueryResult
from mysqlweb.models.schemas import ErrorResponse, QueryResponse
from mysqlweb.services.query_service import QueryService

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Query"],
    responses={400: {"model": ErrorResponse}},
)

CSV_FORMAT = "csv"


def render_result(result: QueryResult, output_format: Optional[str]) -> Response:
    """
    Render a result in the requested wire format (JSON by default).

    Row counts are also reported in headers for the audit log.
    """
    if output_format and output_format.lower() == CSV_FORMAT:
        response = Response(content=result.to_csv(), media_type="text/csv")
    else:
        response = JSONResponse(content=result.to_dict())

    response.headers[ROW_COUNT_HEADER] = str(result.row_count)
    if result.rows_affected is not None:
        response.headers[ROWS_AFFECTED_HEADER] = str(result.rows_affected)
    return response


@router.get(
    "/query",
    response_model=QueryResponse,
    summary="Run a SQL statement",
)
def run_query_get(
    query: Optional[str] = Query(default=None),
    conn_id: Optional[str] = Query(default=None),
    output_format: Optional[str] = Query(default=None, alias="format"),
    header_conn_id: Optional[str] = Depends(get_conn_id),
    service: QueryService = Depends(get_query_service),
) -> Response:
    result = service.run(header_conn_id or conn_id, query)
    return render_result(result, output_format)


@router.post(
    "/query",
    response_model=QueryResponse,
    summary="Run a SQL statement",
)
def run_query_post(
    query: Optional[str] = Form(default=None),
    conn_id: Optional[str] = Form(default=None),
    output_format: Optional[str] = Query(default=None, alias="format"),
    header_conn_id: Optional[str] = Depends(get_conn_id),
    service: QueryService = Depends(get_query_service),
) -> Response:
    result = service.run(header_conn_id or conn_id, query)
    return render_result(result, output_format)


@router.get(
    "/explain",
    response_model=QueryResponse,
    summary="Explain a SQL statement",
)
def explain_query_get(
    query: Optional[str] = Query(default=None),
    conn_id: Optional[str] = Query(default=None),
    output_format: Optional[str] = Query(default=None, alias="format"),
    header_conn_id: Optional[str] = Depends(get_conn_id),
    service: QueryService = Depends(get_query_service),
) -> Response:
    result = service.explain(header_conn_id or conn_id, query)
    return render_result(result, output_format)


@router.post(
    "/explain",
    response_model=QueryResponse,
    summary="Explain a SQL statement",
)
def explain_query_post(
    query: Optional[str] = Form(default=None),
    conn_id: Optional[str] = Form(default=None),
    output_format: Optional[str] = Query(default=None, alias="format"),
    header_conn_id: Optional[str] = Depends(get_conn_id),
    service: QueryService = Depends(get_query_service),
) -> Response:
    result = service.explain(header_conn_id or conn_id, query)
    return render_result(result, output_format)
