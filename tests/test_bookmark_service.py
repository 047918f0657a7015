"""Tests for the file-backed bookmark store."""
import json

import pytest

from mysqlweb.core.exceptions import (
    AlreadyExistsError,
    BookmarkNotFoundError,
    ConfigError,
    ValidationError,
)
from mysqlweb.models.schemas import Bookmark, BookmarkConnection
from mysqlweb.services.bookmark_service import BookmarkStore, parse_port


def _bookmark(name="prod", host="db.internal", port=3306):
    return Bookmark(
        name=name,
        conn_info=BookmarkConnection(host=host, port=port, username="app", database="shop"),
    )


class TestBookmarkStore:
    """Tests for BookmarkStore."""

    def test_list_creates_directory(self, tmp_path):
        store = BookmarkStore(tmp_path / "nested" / "bookmarks")

        assert store.list() == []
        assert (tmp_path / "nested" / "bookmarks").is_dir()

    def test_save_and_list(self, bookmark_store):
        bookmark_store.save(_bookmark("prod"))
        bookmark_store.save(_bookmark("dev", host="localhost"))

        bookmarks = bookmark_store.list()

        assert [b.name for b in bookmarks] == ["dev", "prod"]
        assert bookmarks[1].conn_info.host == "db.internal"
        assert bookmarks[1].conn_info.username == "app"

    def test_file_format(self, bookmark_store):
        bookmark_store.save(_bookmark("prod"))

        data = json.loads((bookmark_store.path / "prod.json").read_text())

        assert data == {"host": "db.internal", "port": 3306, "username": "app", "database": "shop"}

    def test_duplicate_save(self, bookmark_store):
        bookmark_store.save(_bookmark("prod"))

        with pytest.raises(AlreadyExistsError):
            bookmark_store.save(_bookmark("prod", host="elsewhere"))

        bookmarks = bookmark_store.list()
        assert len(bookmarks) == 1
        assert bookmarks[0].conn_info.host == "db.internal"

    def test_delete(self, bookmark_store):
        bookmark_store.save(_bookmark("prod"))

        bookmark_store.delete("prod")

        assert bookmark_store.list() == []
        with pytest.raises(BookmarkNotFoundError):
            bookmark_store.delete("prod")

    def test_non_json_and_broken_files_are_skipped(self, bookmark_store):
        bookmark_store.save(_bookmark("prod"))
        (bookmark_store.path / "notes.txt").write_text("ignore me")
        (bookmark_store.path / "broken.json").write_text("{not json")

        assert [b.name for b in bookmark_store.list()] == ["prod"]

    @pytest.mark.parametrize("name", ["", "../escape", "a/b", ".hidden", "x" * 201])
    def test_unsafe_names(self, bookmark_store, name):
        with pytest.raises(ValidationError):
            bookmark_store.save(_bookmark(name))


class TestParsePort:
    """Tests for form port parsing."""

    def test_valid(self):
        assert parse_port("3306") == 3306
        assert parse_port(" 3307 ") == 3307

    @pytest.mark.parametrize("raw", [None, "", "abc", "0", "70000"])
    def test_invalid(self, raw):
        with pytest.raises(ConfigError):
            parse_port(raw)
