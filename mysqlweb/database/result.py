"""
Query Result - Tabular results and their wire formats.

This module provides:
- Normalization of driver cell values to a closed set of kinds
- Row-object rendering (list of column -> value mappings)
- Delimited-text rendering (CSV bytes)

Every cell is one of NULL, BOOL, INT, FLOAT, TEXT or BYTES. Driver values
outside that set (Decimal, dates, times, UUIDs) are stored as TEXT when the
result is built, so rendering only has to handle the six kinds.
"""
import base64
import csv
import datetime
import io
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from mysqlweb.core.exceptions import NoDataError


class CellKind(str, Enum):
    """Kinds of value a result cell may hold."""
    NULL = "null"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    TEXT = "text"
    BYTES = "bytes"


def cell_kind(value: Any) -> CellKind:
    """
    Classify a normalized cell value.

    Raises:
        TypeError: If the value was not normalized first
    """
    if value is None:
        return CellKind.NULL
    # bool is a subclass of int, check it first
    if isinstance(value, bool):
        return CellKind.BOOL
    if isinstance(value, int):
        return CellKind.INT
    if isinstance(value, float):
        return CellKind.FLOAT
    if isinstance(value, str):
        return CellKind.TEXT
    if isinstance(value, bytes):
        return CellKind.BYTES
    raise TypeError(f"Unsupported cell type: {type(value).__name__}")


def normalize_cell(value: Any) -> Any:
    """Convert a driver value into one of the CellKind representations."""
    if value is None or isinstance(value, (bool, int, float, str, bytes)):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat(sep=" ") if isinstance(value, datetime.datetime) else value.isoformat()
    # Decimal, timedelta, UUID, set (MySQL SET columns) and the rest
    if isinstance(value, (set, frozenset)):
        return ",".join(sorted(str(v) for v in value))
    return str(value)


def _bytes_text(value: bytes) -> str:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return base64.b64encode(value).decode("ascii")


def render_json(value: Any) -> Any:
    """Render a normalized cell as a JSON-safe value."""
    kind = cell_kind(value)
    if kind is CellKind.BYTES:
        return _bytes_text(value)
    if kind is CellKind.FLOAT and not math.isfinite(value):
        return None
    return value


def render_text(value: Any) -> str:
    """Render a normalized cell as a CSV field."""
    kind = cell_kind(value)
    if kind is CellKind.NULL:
        return ""
    if kind is CellKind.BOOL:
        return "true" if value else "false"
    if kind is CellKind.BYTES:
        return _bytes_text(value)
    if kind is CellKind.TEXT:
        return value
    return str(value)


@dataclass(frozen=True)
class QueryResult:
    """
    Result of one statement.

    Attributes:
        columns: Column names in result order
        rows: Rows as tuples of normalized cells
        rows_affected: Driver row count for statements without a result set
        execution_time_ms: Statement execution time in milliseconds
    """
    columns: List[str] = field(default_factory=list)
    rows: List[Tuple[Any, ...]] = field(default_factory=list)
    rows_affected: Optional[int] = None
    execution_time_ms: float = 0.0

    @classmethod
    def from_driver(
        cls,
        columns: Iterable[str],
        rows: Iterable[Sequence[Any]],
        rows_affected: Optional[int] = None,
        execution_time_ms: float = 0.0,
    ) -> "QueryResult":
        """Build a result from raw driver rows, normalizing every cell."""
        return cls(
            columns=[str(c) for c in columns],
            rows=[tuple(normalize_cell(v) for v in row) for row in rows],
            rows_affected=rows_affected,
            execution_time_ms=execution_time_ms,
        )

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_records(self) -> List[Dict[str, Any]]:
        """
        Format rows as column -> value mappings.

        Column order within each row and row order are preserved. When two
        columns share a name the later one wins.
        """
        return [
            {column: render_json(value) for column, value in zip(self.columns, row)}
            for row in self.rows
        ]

    def single_record(self) -> Dict[str, Any]:
        """
        Return the only record of a single-row metadata query.

        Raises:
            NoDataError: If the result is empty
        """
        records = self.to_records()
        if not records:
            raise NoDataError()
        return records[0]

    def column_values(self, index: int = 0) -> List[Any]:
        """Return one column as a flat list (e.g. database names)."""
        return [render_json(row[index]) for row in self.rows]

    def to_csv(self) -> bytes:
        """
        Format the result as CSV.

        The first line holds the column names; each following line holds one
        row. NULL cells become empty fields.
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
        writer.writerow(self.columns)
        for row in self.rows:
            writer.writerow([render_text(value) for value in row])
        return buffer.getvalue().encode("utf-8")

    def to_dict(self) -> Dict[str, Any]:
        """Structured response body."""
        return {
            "columns": list(self.columns),
            "data": self.to_records(),
            "row_count": self.row_count,
            "rows_affected": self.rows_affected,
            "execution_time_ms": round(self.execution_time_ms, 3),
        }
