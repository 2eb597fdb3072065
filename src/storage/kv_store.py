"""
Key-value persistence for the engine.

The engine only ever talks to a KeyValueStore: get(key) returns a JSON value
or None, set(key, value) overwrites. Three backends are provided:

- MemoryStore: process-local dict (tests, throwaway sessions)
- JsonFileStore: one <key>.json file per key, in ~/.vocab/store by default
- SqlStore: a single kv_store table through SQLAlchemy (SQLite by default)

The store is shared and last-write-wins. Backends raise StoreUnavailable on
I/O failure; readers use read_value() which never raises.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from loguru import logger
from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, delete, select
from sqlalchemy.exc import SQLAlchemyError

from src.core.errors import StoreUnavailable

DEFAULT_STORE_DIR = Path.home() / ".vocab" / "store"

_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


class KeyValueStore(ABC):
    """Port for the external key-value store."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the JSON value stored under key, or None."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serialisable value under key."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove key. Returns True if something was removed."""

    @abstractmethod
    def keys(self) -> list[str]:
        """List stored keys."""


class MemoryStore(KeyValueStore):
    """In-memory store. Values round-trip through JSON like the real backends."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreUnavailable(f"Corrupt value for '{key}': {e}") from e

    def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StoreUnavailable(f"Value for '{key}' is not JSON-serialisable: {e}") from e

    def set_raw(self, key: str, raw: str) -> None:
        """Store an unparsed string as-is (used to simulate corrupt values)."""
        self._data[key] = raw

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileStore(KeyValueStore):
    """
    Directory of JSON files, one per key.

    Keys are sanitised into file names: {key}.json
    """

    def __init__(self, directory: Path | None = None):
        self.directory = directory or DEFAULT_STORE_DIR
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{_SAFE_KEY.sub('_', key)}.json"

    def get(self, key: str) -> Any | None:
        filepath = self._path(key)
        if not filepath.exists():
            return None
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except OSError as e:
            raise StoreUnavailable(f"Cannot read {filepath}: {e}") from e
        except json.JSONDecodeError as e:
            raise StoreUnavailable(f"Corrupt value in {filepath}: {e}") from e

    def set(self, key: str, value: Any) -> None:
        filepath = self._path(key)
        tmp_path = filepath.with_suffix(".json.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2, ensure_ascii=False)
            tmp_path.replace(filepath)
        except (OSError, TypeError, ValueError) as e:
            raise StoreUnavailable(f"Cannot write {filepath}: {e}") from e

    def delete(self, key: str) -> bool:
        filepath = self._path(key)
        if filepath.exists():
            filepath.unlink()
            return True
        return False

    def keys(self) -> list[str]:
        return sorted(p.stem for p in self.directory.glob("*.json"))


class SqlStore(KeyValueStore):
    """Key-value table backed by SQLAlchemy Core."""

    def __init__(self, database_url: str = "sqlite:///:memory:"):
        self.database_url = database_url
        self._metadata = MetaData()
        self._table = Table(
            "kv_store",
            self._metadata,
            Column("key", String(255), primary_key=True),
            Column("value", Text, nullable=False),
        )
        try:
            self._engine = create_engine(database_url, future=True)
            self._metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Cannot open store at {database_url}: {e}") from e
        logger.info(f"SqlStore initialized at {database_url}")

    def get(self, key: str) -> Any | None:
        try:
            with self._engine.connect() as conn:
                row = conn.execute(
                    select(self._table.c.value).where(self._table.c.key == key)
                ).first()
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Cannot read '{key}': {e}") from e
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            raise StoreUnavailable(f"Corrupt value for '{key}': {e}") from e

    def set(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StoreUnavailable(f"Value for '{key}' is not JSON-serialisable: {e}") from e
        try:
            with self._engine.begin() as conn:
                conn.execute(delete(self._table).where(self._table.c.key == key))
                conn.execute(self._table.insert().values(key=key, value=payload))
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Cannot write '{key}': {e}") from e

    def delete(self, key: str) -> bool:
        try:
            with self._engine.begin() as conn:
                result = conn.execute(delete(self._table).where(self._table.c.key == key))
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Cannot delete '{key}': {e}") from e
        return result.rowcount > 0

    def keys(self) -> list[str]:
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(select(self._table.c.key)).fetchall()
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Cannot list keys: {e}") from e
        return sorted(row[0] for row in rows)


def read_value(store: KeyValueStore, key: str, default: Any, expected: type | tuple[type, ...] | None = None) -> Any:
    """
    Read key from store, falling back to default instead of raising.

    A failed read, a corrupt value or a value of the wrong type all yield
    the default (logged as a warning).
    """
    try:
        value = store.get(key)
    except StoreUnavailable as e:
        logger.warning(f"Store read failed for '{key}', using empty default: {e}")
        return default
    except Exception as e:
        logger.warning(f"Unexpected store error for '{key}', using empty default: {e}")
        return default

    if value is None:
        return default
    if expected is not None and not isinstance(value, expected):
        logger.warning(
            f"Ignoring stored '{key}': expected {expected}, got {type(value).__name__}"
        )
        return default
    return value
