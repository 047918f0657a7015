"""Tests for the UPDATE/DELETE guard."""
import pytest

from mysqlweb.core.exceptions import UnsafeStatementError
from mysqlweb.database.validator import QueryGuard


@pytest.fixture
def guard():
    return QueryGuard()


@pytest.mark.parametrize("statement", [
    "DELETE FROM users",
    "delete from users",
    "UPDATE users SET name = 'x'",
    "update users set name = 'x'",
    "SELECT last_updated FROM audit",
])
def test_rejects_without_where(guard, statement):
    with pytest.raises(UnsafeStatementError) as exc_info:
        guard.check(statement)

    assert "WHERE" in exc_info.value.message


@pytest.mark.parametrize("statement", [
    "DELETE FROM users WHERE id = 1",
    "update users set name = 'x' where id = 2",
    "SELECT * FROM users",
    "INSERT INTO users (id) VALUES (3)",
    "SHOW DATABASES",
    # lexical check: WHERE anywhere in the text satisfies it
    "DELETE FROM users -- WHERE",
])
def test_allows(guard, statement):
    guard.check(statement)


def test_disabled_guard_allows_everything():
    guard = QueryGuard(enforce_where=False)

    guard.check("DELETE FROM users")
    assert guard.is_unsafe("DELETE FROM users") is True
