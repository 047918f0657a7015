"""
Audit Middleware - Request/response logging for monitoring.

Every API request is logged with:
- Method, path, status code and duration
- Connection id prefix (from X-CONN-ID or the conn_id query field)
- Statement outcome reported by the route: rows returned or affected
- Error code of a failed request; safety-gate rejections get their own line

Routes report outcomes through response headers (see OUTCOME_HEADERS) so
the middleware never has to read response bodies.
"""
import time
from typing import Callable, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from mysqlweb.core.logging_config import get_logger

logger = get_logger(__name__)

QUIET_PATHS = ("/health", "/health/ready", "/api/update")

ROW_COUNT_HEADER = "X-Row-Count"
ROWS_AFFECTED_HEADER = "X-Rows-Affected"
ERROR_CODE_HEADER = "X-Error-Code"

# header -> audit log field
OUTCOME_HEADERS = {
    ROW_COUNT_HEADER: "rows",
    ROWS_AFFECTED_HEADER: "affected",
    ERROR_CODE_HEADER: "error",
}

UNSAFE_STATEMENT_CODE = "unsafe_statement"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def _short_conn_id(request: Request) -> str:
    conn_id = request.headers.get("X-CONN-ID") or request.query_params.get("conn_id", "")
    return conn_id[:8] or "-"


class AuditMiddleware(BaseHTTPMiddleware):
    """
    Log one audit line per request.

    Health checks, the update placeholder and static assets are logged at
    DEBUG only.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        conn_id = _short_conn_id(request)

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                f"REQUEST FAILED: {request.method} {request.url.path} "
                f"conn={conn_id} duration={duration:.3f}s error={e}"
            )
            raise

        duration = time.time() - start_time
        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        self._log_request(request, response, duration, conn_id)
        return response

    def _log_request(
        self,
        request: Request,
        response: Response,
        duration: float,
        conn_id: str,
    ) -> None:
        path = request.url.path
        status_code = response.status_code

        if path in QUIET_PATHS or path.startswith("/static/"):
            logger.debug(f"QUIET: {path} status={status_code} duration={duration:.3f}s")
            return

        outcome = self._outcome(response)

        if outcome.get("error") == UNSAFE_STATEMENT_CODE:
            logger.warning(
                f"SAFETY GATE: rejected UPDATE/DELETE without WHERE on {path} conn={conn_id}"
            )

        if status_code >= 500:
            log_fn = logger.error
        elif status_code >= 400:
            log_fn = logger.warning
        else:
            log_fn = logger.info

        fields = "".join(f" {name}={value}" for name, value in outcome.items())
        log_fn(
            f"REQUEST: {request.method} {path} "
            f"status={status_code} duration={duration:.3f}s "
            f"conn={conn_id}{fields}"
        )

    @staticmethod
    def _outcome(response: Response) -> Dict[str, str]:
        return {
            field: response.headers[header]
            for header, field in OUTCOME_HEADERS.items()
            if header in response.headers
        }


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add SECURITY_HEADERS to every response.

    API responses also get ``Cache-Control: no-store``, since query
    results and server info must not be cached by the browser.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store"

        return response
