"""
Bookmark Store - Named connection profiles saved as JSON files.

Each bookmark lives in its own ``<name>.json`` file inside the bookmark
directory. The file holds the connection parameters; the name comes from
the file name. Passwords are never stored.
"""
import json
import os
import re
from pathlib import Path
from typing import List, Union

from pydantic import ValidationError as PydanticValidationError

from mysqlweb.core.exceptions import (
    AlreadyExistsError,
    BookmarkNotFoundError,
    ConfigError,
    ValidationError,
)
from mysqlweb.core.logging_config import get_logger
from mysqlweb.models.schemas import Bookmark, BookmarkConnection

logger = get_logger(__name__)

BOOKMARK_SUFFIX = ".json"

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_\-][A-Za-z0-9_.\-]*$")


def validate_bookmark_name(name: str) -> str:
    """
    Check that a bookmark name is safe to use as a file name.

    Raises:
        ValidationError: If the name is empty or contains path characters
    """
    if not name or len(name) > 200 or not _NAME_PATTERN.match(name):
        raise ValidationError(f"Invalid bookmark name: {name!r}", field="name")
    return name


def parse_port(raw: Union[str, int, None]) -> int:
    """
    Parse a port submitted through a form.

    Raises:
        ConfigError: If the value is not a number
    """
    try:
        port = int(str(raw).strip())
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid port: {raw!r}")
    if not 0 < port < 65536:
        raise ConfigError(f"Port out of range: {port}")
    return port


class BookmarkStore:
    """
    File-backed bookmark storage.

    Example:
        >>> store = BookmarkStore(Path("~/.mysqlweb/bookmark").expanduser())
        >>> store.save(Bookmark(name="prod", conn_info=BookmarkConnection(host="db", port=3306)))
        >>> [b.name for b in store.list()]
        ['prod']
    """

    def __init__(self, path: Path):
        """
        Initialize the store.

        Args:
            path: Bookmark directory, created on first use
        """
        self.path = Path(path)

    def _ensure_dir(self) -> Path:
        self.path.mkdir(parents=True, exist_ok=True)
        return self.path

    def _file_for(self, name: str) -> Path:
        return self.path / f"{validate_bookmark_name(name)}{BOOKMARK_SUFFIX}"

    def list(self) -> List[Bookmark]:
        """
        Read every bookmark, sorted by name.

        Files that are not JSON are skipped. Unreadable JSON is logged and
        skipped so one broken file does not hide the others.
        """
        directory = self._ensure_dir()
        bookmarks = []

        for file_path in sorted(directory.glob(f"*{BOOKMARK_SUFFIX}")):
            if not file_path.is_file():
                continue
            try:
                data = json.loads(file_path.read_text(encoding="utf-8"))
                conn_info = BookmarkConnection.model_validate(data)
            except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
                logger.warning(f"Skipping unreadable bookmark {file_path.name}: {e}")
                continue
            bookmarks.append(Bookmark(name=file_path.stem, conn_info=conn_info))

        return bookmarks

    def save(self, bookmark: Bookmark) -> None:
        """
        Create a bookmark file.

        Uses exclusive creation so two concurrent saves of the same name
        cannot both succeed.

        Raises:
            AlreadyExistsError: If a bookmark with this name exists
        """
        self._ensure_dir()
        file_path = self._file_for(bookmark.name)
        payload = json.dumps(bookmark.conn_info.model_dump(), indent=2)

        try:
            with open(file_path, "x", encoding="utf-8") as handle:
                handle.write(payload)
        except FileExistsError:
            logger.info(f"Bookmark already exists: {bookmark.name}")
            raise AlreadyExistsError(bookmark.name)

        logger.info(f"Saved bookmark {bookmark.name}")

    def delete(self, name: str) -> None:
        """
        Remove a bookmark.

        Raises:
            BookmarkNotFoundError: If no bookmark has this name
        """
        file_path = self._file_for(name)
        try:
            os.remove(file_path)
        except FileNotFoundError:
            raise BookmarkNotFoundError(name)

        logger.info(f"Deleted bookmark {name}")
