"""
Database Routes - Schema browsing and administration endpoints.

These endpoints allow:
- Listing databases, tables, views, procedures and functions
- Inspecting columns, indexes, table sizes and routine definitions
- Altering and dropping databases, dropping and truncating tables
- Creating, replacing and dropping stored procedures and functions
- Searching object names across the server

All endpoints act on the session named by the X-CONN-ID header.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Form, Query, Response

from mysqlweb.api.dependencies import get_client, get_conn_id, get_query_service
from mysqlweb.core.logging_config import get_logger
from mysqlweb.database.client import DatabaseClient
from mysqlweb.models.schemas import ErrorResponse, QueryResponse
from mysqlweb.services.query_service import QueryService

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Database"],
    responses={400: {"model": ErrorResponse}},
)


def _no_content() -> Response:
    return Response(status_code=204)


# ============================================================
# Databases
# ============================================================

@router.get("/databases", summary="List databases")
def list_databases(client: DatabaseClient = Depends(get_client)) -> List[str]:
    return client.databases()


@router.put(
    "/databases/{database}",
    status_code=201,
    response_model=QueryResponse,
    summary="Change database character set and collation",
)
def alter_database(
    database: str,
    charset: Optional[str] = Form(default=None),
    collation: Optional[str] = Form(default=None),
    client: DatabaseClient = Depends(get_client),
) -> Dict[str, Any]:
    logger.info(f"Altering database {database}: charset={charset} collation={collation}")
    return client.alter_database(database, charset, collation).to_dict()


@router.delete(
    "/databases/{database}",
    status_code=204,
    response_class=Response,
    summary="Drop a database",
)
def drop_database(database: str, client: DatabaseClient = Depends(get_client)) -> Response:
    logger.info(f"Dropping database {database} on session {client.key[:8]}")
    client.drop_database(database)
    return _no_content()


@router.post(
    "/databases/{database}/actions/default",
    response_model=QueryResponse,
    summary="Use a database as the session default",
)
def set_default_database(
    database: str,
    conn_id: Optional[str] = Depends(get_conn_id),
    service: QueryService = Depends(get_query_service),
) -> Dict[str, Any]:
    return service.use_database(conn_id, database).to_dict()


@router.get("/databases/{database}/tables", summary="List tables of a database")
def list_tables(database: str, client: DatabaseClient = Depends(get_client)) -> List[Any]:
    return client.tables(database)


@router.get("/databases/{database}/views", summary="List views of a database")
def list_views(database: str, client: DatabaseClient = Depends(get_client)) -> List[Any]:
    return client.views(database)


@router.get("/databases/{database}/procedures", summary="List stored procedures")
def list_procedures(database: str, client: DatabaseClient = Depends(get_client)) -> List[Any]:
    return client.procedures(database)


@router.get("/databases/{database}/functions", summary="List stored functions")
def list_functions(database: str, client: DatabaseClient = Depends(get_client)) -> List[Any]:
    return client.functions(database)


# ============================================================
# Tables
# ============================================================

@router.get(
    "/databases/{database}/tables/{table}/columns",
    response_model=QueryResponse,
    summary="Columns of a table",
)
def table_columns(
    database: str,
    table: str,
    client: DatabaseClient = Depends(get_client),
) -> Dict[str, Any]:
    return client.table_columns(database, table).to_dict()


@router.delete(
    "/databases/{database}/tables/{table}",
    status_code=204,
    response_class=Response,
    summary="Drop a table",
)
def drop_table(database: str, table: str, client: DatabaseClient = Depends(get_client)) -> Response:
    logger.info(f"Dropping table {database}.{table} on session {client.key[:8]}")
    client.drop_table(database, table)
    return _no_content()


@router.post(
    "/databases/{database}/tables/{table}/actions/truncate",
    status_code=204,
    response_class=Response,
    summary="Truncate a table",
)
def truncate_table(database: str, table: str, client: DatabaseClient = Depends(get_client)) -> Response:
    logger.info(f"Truncating table {database}.{table} on session {client.key[:8]}")
    client.truncate_table(database, table)
    return _no_content()


@router.get(
    "/tables/{table}/info",
    summary="Size and row estimate of a table in the current database",
)
def table_info(table: str, client: DatabaseClient = Depends(get_client)) -> Dict[str, Any]:
    return client.table_info(table).single_record()


@router.get(
    "/tables/{table}/indexes",
    response_model=QueryResponse,
    summary="Indexes of a table in the current database",
)
def table_indexes(table: str, client: DatabaseClient = Depends(get_client)) -> Dict[str, Any]:
    return client.table_indexes(table).to_dict()


# ============================================================
# Views
# ============================================================

@router.get(
    "/databases/{database}/views/{view}",
    response_model=QueryResponse,
    summary="Definition of a view",
)
def view_definition(database: str, view: str, client: DatabaseClient = Depends(get_client)) -> Dict[str, Any]:
    return client.view_definition(database, view).to_dict()


# ============================================================
# Stored procedures and functions
# ============================================================

@router.get(
    "/procedures/{procedure}/parameters",
    response_model=QueryResponse,
    summary="Parameters of a stored procedure or function",
)
def procedure_parameters(
    procedure: str,
    database: str = Query(default=""),
    client: DatabaseClient = Depends(get_client),
) -> Dict[str, Any]:
    return client.procedure_parameters(procedure, database).to_dict()


@router.get(
    "/databases/{database}/procedures/{procedure}",
    response_model=QueryResponse,
    summary="Definition of a stored procedure",
)
def procedure_definition(
    database: str,
    procedure: str,
    client: DatabaseClient = Depends(get_client),
) -> Dict[str, Any]:
    return client.procedure_definition("PROCEDURE", database, procedure).to_dict()


@router.post(
    "/databases/{database}/procedures/{procedure}",
    summary="Create or replace a stored procedure",
)
def create_procedure(
    database: str,
    procedure: str,
    definition: Optional[str] = Form(default=None),
    client: DatabaseClient = Depends(get_client),
) -> Response:
    logger.info(f"Creating procedure {database}.{procedure} on session {client.key[:8]}")
    client.create_procedure("PROCEDURE", database, procedure, definition)
    return Response(status_code=200)


@router.delete(
    "/databases/{database}/procedures/{procedure}",
    status_code=204,
    response_class=Response,
    summary="Drop a stored procedure",
)
def drop_procedure(database: str, procedure: str, client: DatabaseClient = Depends(get_client)) -> Response:
    logger.info(f"Dropping procedure {database}.{procedure} on session {client.key[:8]}")
    client.drop_procedure("PROCEDURE", database, procedure)
    return _no_content()


@router.get(
    "/databases/{database}/functions/{function}",
    response_model=QueryResponse,
    summary="Definition of a stored function",
)
def function_definition(
    database: str,
    function: str,
    client: DatabaseClient = Depends(get_client),
) -> Dict[str, Any]:
    return client.procedure_definition("FUNCTION", database, function).to_dict()


@router.post(
    "/databases/{database}/functions/{function}",
    summary="Create or replace a stored function",
)
def create_function(
    database: str,
    function: str,
    definition: Optional[str] = Form(default=None),
    client: DatabaseClient = Depends(get_client),
) -> Response:
    logger.info(f"Creating function {database}.{function} on session {client.key[:8]}")
    client.create_procedure("FUNCTION", database, function, definition)
    return Response(status_code=200)


@router.delete(
    "/databases/{database}/functions/{function}",
    status_code=204,
    response_class=Response,
    summary="Drop a stored function",
)
def drop_function(database: str, function: str, client: DatabaseClient = Depends(get_client)) -> Response:
    logger.info(f"Dropping function {database}.{function} on session {client.key[:8]}")
    client.drop_procedure("FUNCTION", database, function)
    return _no_content()


# ============================================================
# Server-wide
# ============================================================

@router.get(
    "/collation",
    response_model=QueryResponse,
    summary="Available character sets and collations",
)
def collation_charsets(client: DatabaseClient = Depends(get_client)) -> Dict[str, Any]:
    return client.collation_charsets().to_dict()


@router.get(
    "/search/{term}",
    response_model=QueryResponse,
    summary="Search object names",
)
def search(term: str, client: DatabaseClient = Depends(get_client)) -> Dict[str, Any]:
    return client.search(term).to_dict()
