"""Tests for the HTTP API."""
import logging

from fastapi.testclient import TestClient

from mysqlweb.database.connection_manager import SessionRegistry

from tests.conftest import SERVER_VERSION, SHOP_URL


def _headers(conn_id):
    return {"X-CONN-ID": conn_id}


class TestConnect:
    """Tests for POST /api/connect and session discovery."""

    def test_connect_returns_info_and_conn_id(self, client: TestClient):
        response = client.post("/api/connect", data={"url": SHOP_URL})

        assert response.status_code == 200
        data = response.json()
        assert data["version"] == SERVER_VERSION
        assert data["current_database"] == "shopdb"
        assert data["connId"]

    def test_connect_lists_session(self, client: TestClient, conn_id):
        response = client.get("/api/connections")

        assert response.status_code == 200
        assert response.json() == {
            "connections": [{
                "host": "localhost",
                "port": 3306,
                "username": "user",
                "database": "shopdb",
                "conn_id": conn_id,
            }]
        }

    def test_connect_requires_url(self, client: TestClient):
        response = client.post("/api/connect", data={})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_connect_malformed_url(self, client: TestClient):
        response = client.post("/api/connect", data={"url": "localhost:3306"})

        assert response.status_code == 400
        assert response.json()["error"] == "malformed_url"

    def test_failed_connect_keeps_session_reopened_meanwhile(
        self, client: TestClient, registry, monkeypatch
    ):
        original_open = SessionRegistry.open
        reopened = []

        def open_then_reconnect(self, url):
            first = original_open(self, url)
            # another request reconnects to the same URL before info() runs
            reopened.append(original_open(self, url))
            return first

        monkeypatch.setattr(SessionRegistry, "open", open_then_reconnect)

        response = client.post("/api/connect", data={"url": SHOP_URL})

        assert response.status_code == 400
        assert response.json()["error"] == "execution_error"
        newer = reopened[0]
        assert newer.is_open
        assert registry.lookup(newer.key) is newer
        assert registry.count() == 1

    def test_info(self, client: TestClient, conn_id):
        response = client.get("/api/info", headers=_headers(conn_id))

        assert response.status_code == 200
        data = response.json()
        assert data["host"] == "localhost"
        assert data["user"] == "user"
        assert data["version"] == SERVER_VERSION

    def test_info_without_session_lists_open_sessions(self, client: TestClient, conn_id):
        response = client.get("/api/info")

        assert response.status_code == 400
        assert [c["conn_id"] for c in response.json()["connections"]] == [conn_id]

    def test_disconnect(self, client: TestClient, conn_id):
        response = client.post("/api/disconnect", headers=_headers(conn_id))
        assert response.status_code == 204
        assert client.get("/api/connections").json() == {"connections": []}

        response = client.post("/api/disconnect", headers=_headers(conn_id))
        assert response.status_code == 400
        assert response.json()["error"] == "session_not_found"


class TestQuery:
    """Tests for /api/query and /api/explain."""

    def test_json_result(self, client: TestClient, conn_id):
        response = client.post(
            "/api/query",
            data={"query": "SELECT id, name FROM users ORDER BY id"},
            headers=_headers(conn_id),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["columns"] == ["id", "name"]
        assert data["data"] == [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}]
        assert data["row_count"] == 2

    def test_csv_result(self, client: TestClient, conn_id):
        response = client.post(
            "/api/query?format=csv",
            data={"query": "SELECT id, name FROM users ORDER BY id"},
            headers=_headers(conn_id),
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.content == b"id,name\n1,a\n2,b\n"

    def test_conn_id_falls_back_to_form_field(self, client: TestClient, conn_id):
        response = client.post(
            "/api/query",
            data={"query": "SELECT COUNT(*) AS n FROM users", "conn_id": conn_id},
        )

        assert response.status_code == 200
        assert response.json()["data"] == [{"n": 2}]

    def test_get_with_query_string(self, client: TestClient, conn_id):
        response = client.get(
            "/api/query",
            params={"query": "SELECT name FROM users WHERE id = 2", "conn_id": conn_id, "format": "csv"},
        )

        assert response.status_code == 200
        assert response.content == b"name\nb\n"

    def test_missing_connection(self, client: TestClient):
        response = client.post("/api/query", data={"query": "SELECT 1"})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid connection"

    def test_missing_query(self, client: TestClient, conn_id):
        response = client.post("/api/query", data={}, headers=_headers(conn_id))

        assert response.status_code == 400
        assert response.json()["message"] == "Query parameter is missing"

    def test_unsafe_delete_is_rejected(self, client: TestClient, conn_id):
        before = client.get("/api/history", headers=_headers(conn_id)).json()

        response = client.post("/api/query", data={"query": "DELETE FROM users"}, headers=_headers(conn_id))

        assert response.status_code == 400
        assert response.json()["error"] == "unsafe_statement"
        assert client.get("/api/history", headers=_headers(conn_id)).json() == before
        count = client.post(
            "/api/query", data={"query": "SELECT COUNT(*) AS n FROM users"}, headers=_headers(conn_id)
        )
        assert count.json()["data"] == [{"n": 2}]

    def test_qualified_update_is_recorded(self, client: TestClient, conn_id):
        statement = "UPDATE users SET name = 'z' WHERE id = 1"

        response = client.post("/api/query", data={"query": statement}, headers=_headers(conn_id))

        assert response.status_code == 200
        assert response.json()["rows_affected"] == 1
        assert client.get("/api/history", headers=_headers(conn_id)).json()[-1] == statement

    def test_execution_error(self, client: TestClient, conn_id):
        response = client.post("/api/query", data={"query": "SELECT * FROM nope"}, headers=_headers(conn_id))

        assert response.status_code == 400
        assert response.json()["error"] == "execution_error"
        assert "nope" in response.json()["message"]

    def test_explain(self, client: TestClient, conn_id):
        response = client.post(
            "/api/explain", data={"query": "SELECT * FROM users"}, headers=_headers(conn_id)
        )

        assert response.status_code == 200
        assert response.json()["row_count"] >= 1


class TestSchemaRoutes:
    """Tests for schema routes that need a session."""

    def test_requires_session(self, client: TestClient):
        for path in ("/api/databases", "/api/history", "/api/collation", "/api/tables/users/info"):
            response = client.get(path)
            assert response.status_code == 400, path
            assert response.json()["error"] == "session_not_found"

    def test_driver_errors_become_400(self, client: TestClient, conn_id):
        # SQLite has no information_schema or SHOW statements
        response = client.get("/api/databases", headers=_headers(conn_id))

        assert response.status_code == 400
        assert response.json()["error"] == "execution_error"

    def test_invalid_charset(self, client: TestClient, conn_id):
        response = client.put(
            "/api/databases/shop",
            data={"charset": "utf8; DROP", "collation": "utf8_general_ci"},
            headers=_headers(conn_id),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_empty_routine_definition(self, client: TestClient, conn_id):
        response = client.post(
            "/api/databases/shop/procedures/p1",
            data={"definition": ""},
            headers=_headers(conn_id),
        )

        assert response.status_code == 400


class TestBookmarks:
    """Tests for the bookmark endpoints."""

    def test_save_list_delete(self, client: TestClient):
        response = client.post(
            "/api/bookmarks/prod",
            data={"host": "db.internal", "port": "3306", "user": "app", "database": "shop"},
        )
        assert response.status_code == 204

        response = client.get("/api/bookmarks")
        assert response.status_code == 200
        assert response.json() == {
            "bookmarks": [{
                "name": "prod",
                "conn_info": {"host": "db.internal", "port": 3306, "username": "app", "database": "shop"},
            }]
        }

        assert client.delete("/api/bookmarks/prod").status_code == 204
        assert client.get("/api/bookmarks").json() == {"bookmarks": []}

    def test_duplicate_name(self, client: TestClient):
        form = {"host": "db.internal", "port": "3306", "user": "app", "database": "shop"}

        assert client.post("/api/bookmarks/prod", data=form).status_code == 204
        response = client.post("/api/bookmarks/prod", data={**form, "host": "other"})

        assert response.status_code == 400
        assert response.json()["error"] == "already_exists"
        bookmarks = client.get("/api/bookmarks").json()["bookmarks"]
        assert [b["name"] for b in bookmarks] == ["prod"]
        assert bookmarks[0]["conn_info"]["host"] == "db.internal"

    def test_non_numeric_port(self, client: TestClient):
        response = client.post("/api/bookmarks/prod", data={"host": "h", "port": "abc"})

        assert response.status_code == 400
        assert response.json()["error"] == "config_error"

    def test_delete_missing(self, client: TestClient):
        response = client.delete("/api/bookmarks/missing")

        assert response.status_code == 400
        assert response.json()["error"] == "bookmark_not_found"


class TestMisc:
    """Tests for health, update and static routes."""

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_ready_counts_sessions(self, client: TestClient, conn_id):
        response = client.get("/health/ready")

        assert response.json()["open_sessions"] == 1

    def test_openapi_documents_error_body(self, client: TestClient):
        paths = client.get("/openapi.json").json()["paths"]

        for path, method in (("/api/query", "post"), ("/api/connect", "post"), ("/api/bookmarks", "get")):
            schema = paths[path][method]["responses"]["400"]["content"]["application/json"]["schema"]
            assert schema["$ref"].endswith("/ErrorResponse"), path

    def test_update_placeholder(self, client: TestClient):
        assert client.get("/api/update").status_code == 204

    def test_index(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "mysqlweb" in response.text

    def test_asset(self, client: TestClient):
        response = client.get("/static/js/app.js")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/javascript")

    def test_missing_asset(self, client: TestClient):
        assert client.get("/static/nope.css").status_code == 404
        assert client.get("/static/../main.py").status_code == 404


class TestAudit:
    """Tests for the statement outcome in audit logs and headers."""

    def _audit_messages(self, caplog):
        return [r.getMessage() for r in caplog.records if r.name == "mysqlweb.core.audit"]

    def test_select_reports_row_count(self, client: TestClient, conn_id, caplog):
        caplog.set_level(logging.INFO, logger="mysqlweb.core.audit")

        response = client.post("/api/query", data={"query": "SELECT * FROM users"}, headers=_headers(conn_id))

        assert response.headers["X-Row-Count"] == "2"
        assert response.headers["Cache-Control"] == "no-store"
        line = self._audit_messages(caplog)[-1]
        assert "/api/query" in line
        assert f"conn={conn_id[:8]}" in line
        assert "rows=2" in line

    def test_update_reports_rows_affected(self, client: TestClient, conn_id, caplog):
        caplog.set_level(logging.INFO, logger="mysqlweb.core.audit")

        response = client.post(
            "/api/query",
            data={"query": "UPDATE users SET name = 'z' WHERE id > 0"},
            headers=_headers(conn_id),
        )

        assert response.headers["X-Rows-Affected"] == "2"
        assert "affected=2" in self._audit_messages(caplog)[-1]

    def test_safety_gate_rejection_is_logged(self, client: TestClient, conn_id, caplog):
        caplog.set_level(logging.INFO, logger="mysqlweb.core.audit")

        response = client.post("/api/query", data={"query": "DELETE FROM users"}, headers=_headers(conn_id))

        assert response.headers["X-Error-Code"] == "unsafe_statement"
        messages = self._audit_messages(caplog)
        assert any(m.startswith("SAFETY GATE") and conn_id[:8] in m for m in messages)
        assert "error=unsafe_statement" in messages[-1]
        assert "rows=" not in messages[-1]
