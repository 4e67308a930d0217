"""SQLite database client wrapper with CRUD operations."""

import asyncio
import json
import logging
import re
import threading
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import date, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from tracker.core.config import settings
from tracker.core.errors import DatabaseError


logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_SORT_TERM = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\s+(ASC|DESC))?$", re.IGNORECASE)


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not _IDENTIFIER.match(collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def _validate_field_names(fields: Iterable[str]) -> None:
    for field in fields:
        if not _IDENTIFIER.match(field):
            msg = f"Invalid field name: {field}"
            raise ValueError(msg)


def _convert_record_ids(record: dict[str, Any]) -> dict[str, Any]:
    """Convert integer ID and foreign key fields to strings for Pydantic compatibility."""
    converted = record.copy()
    for key, value in converted.items():
        if isinstance(value, int) and (key == "id" or key.endswith("_id")):
            converted[key] = str(value)
    return converted


def _to_db_value(value: Any) -> Any:
    """Convert a Python value to something SQLite can store."""
    if isinstance(value, datetime):
        return value.isoformat(timespec="microseconds").replace("+00:00", "Z")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict | list):
        return json.dumps(value)
    return value


def _build_where(
    where: dict[str, Any] | None,
    where_in: dict[str, list[Any]] | None = None,
) -> tuple[str, list[Any]]:
    """Build a parameterised WHERE clause from equality and IN filters."""
    conditions: list[str] = []
    params: list[Any] = []

    for field, value in (where or {}).items():
        _validate_field_names([field])
        if value is None:
            conditions.append(f"{field} IS NULL")
        else:
            conditions.append(f"{field} = ?")
            params.append(_to_db_value(value))

    for field, values in (where_in or {}).items():
        _validate_field_names([field])
        placeholders = ", ".join("?" for _ in values)
        conditions.append(f"{field} IN ({placeholders})")
        params.extend(_to_db_value(value) for value in values)

    if not conditions:
        return "", []
    return "WHERE " + " AND ".join(conditions), params


def _safe_sort(sort: str) -> str:
    """Validate an ORDER BY clause (column [ASC|DESC], comma separated)."""
    terms = [term.strip() for term in sort.split(",") if term.strip()]
    if not terms or not all(_SORT_TERM.match(term) for term in terms):
        logger.warning("Invalid sort parameter, using default", extra={"sort": sort})
        return "id ASC"
    return ", ".join(terms)


def _rows_to_records(cursor: aiosqlite.Cursor, rows: Iterable[Any]) -> list[dict[str, Any]]:
    columns = [description[0] for description in cursor.description]
    return [_convert_record_ids(dict(zip(columns, row, strict=True))) for row in rows]


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


_db_connections: dict[tuple[int, int, str], aiosqlite.Connection] = {}
_connect_locks: dict[int, asyncio.Lock] = {}
_write_locks: dict[int, asyncio.Lock] = {}
_active_connection: ContextVar[aiosqlite.Connection | None] = ContextVar("_active_connection", default=None)


def _loop_lock(locks: dict[int, asyncio.Lock]) -> asyncio.Lock:
    """Return the lock registered for the running event loop, creating it on first use."""
    loop_id = id(asyncio.get_running_loop())
    lock = locks.get(loop_id)
    if lock is None:
        lock = locks[loop_id] = asyncio.Lock()
    return lock


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Get or create a cached connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop = asyncio.get_running_loop()
    loop_id = id(loop)
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key in _db_connections:
        return _db_connections[cache_key]

    async with _loop_lock(_connect_locks):
        # Double-check after acquiring lock
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(str(path))
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.execute("PRAGMA journal_mode = WAL")

        _db_connections[cache_key] = conn

        logger.info(
            "Created new SQLite connection",
            extra={"db_path": str(path), "thread_id": thread_id, "loop_id": loop_id},
        )
        return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close the cached SQLite connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop_id = id(asyncio.get_running_loop())
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    conn = _db_connections.pop(cache_key, None)
    _connect_locks.pop(loop_id, None)
    _write_locks.pop(loop_id, None)
    if conn is None:
        return

    try:
        await conn.close()
        logger.info(
            "Closed SQLite connection",
            extra={"thread_id": thread_id, "loop_id": loop_id, "db_path": str(path)},
        )
    except Exception as e:
        logger.warning(
            "Error closing SQLite connection",
            extra={"error": str(e), "thread_id": thread_id, "loop_id": loop_id},
        )


async def init_db(*, db_path: str | None = None) -> None:
    """Initialize the database schema by delegating to schema.init_db()."""
    schema = __import__("tracker.core.schema", fromlist=["init_db"])
    await schema.init_db(db_path=db_path)


@asynccontextmanager
async def transaction() -> AsyncIterator[aiosqlite.Connection]:
    """Run the enclosed statements as one atomic unit on the shared connection.

    Writers are serialised per event loop. Nested calls join the outer
    transaction. Commits on success, rolls back on any exception.
    """
    active = _active_connection.get()
    if active is not None:
        yield active
        return

    conn = await get_connection()
    async with _loop_lock(_write_locks):
        token = _active_connection.set(conn)
        try:
            yield conn
        except BaseException:
            await conn.rollback()
            logger.warning("Transaction rolled back")
            raise
        else:
            await conn.commit()
        finally:
            _active_connection.reset(token)


def _wrap_error(e: Exception, *, operation: str, collection: str) -> DatabaseError:
    if isinstance(e, aiosqlite.OperationalError) and "no such table" in str(e):
        logger.error("Table not found", extra={"collection": collection})
        return DatabaseError(f"Table '{collection}' does not exist. Call init_db() first.")
    logger.error(f"{operation}_failed", extra={"collection": collection, "error": str(e)})
    return DatabaseError(f"Failed to {operation.replace('_', ' ')} in {collection}: {e}")


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new record and return it with its assigned id."""
    _validate_collection_name(collection)
    _validate_field_names(data)
    try:
        async with transaction() as conn:
            columns = list(data.keys())
            columns_str = ", ".join(columns)
            placeholders_str = ", ".join("?" for _ in columns)
            values = [_to_db_value(data[key]) for key in columns]

            query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - collection is validated
            cursor = await conn.execute(query, values)

            record_id = str(data["id"]) if "id" in data else str(cursor.lastrowid)
            result = await get_record(collection=collection, record_id=record_id)

        logger.info("Created record", extra={"collection": collection, "record_id": record_id})
        return result
    except DatabaseError:
        raise
    except Exception as e:
        raise _wrap_error(e, operation="create_record", collection=collection) from e


async def create_record_if_absent(*, collection: str, data: dict[str, Any]) -> bool:
    """Insert a record unless it collides with a unique index; return whether a row was added."""
    _validate_collection_name(collection)
    _validate_field_names(data)
    try:
        async with transaction() as conn:
            columns = list(data.keys())
            columns_str = ", ".join(columns)
            placeholders_str = ", ".join("?" for _ in columns)
            values = [_to_db_value(data[key]) for key in columns]

            query = f"INSERT OR IGNORE INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - collection is validated
            cursor = await conn.execute(query, values)
            inserted = cursor.rowcount > 0

        logger.info("Inserted record if absent", extra={"collection": collection, "inserted": inserted})
        return inserted
    except Exception as e:
        raise _wrap_error(e, operation="create_record", collection=collection) from e


async def create_records(*, collection: str, rows: list[dict[str, Any]]) -> int:
    """Insert several records sharing the same columns; return the number inserted."""
    if not rows:
        return 0
    _validate_collection_name(collection)
    columns = list(rows[0].keys())
    _validate_field_names(columns)
    try:
        async with transaction() as conn:
            columns_str = ", ".join(columns)
            placeholders_str = ", ".join("?" for _ in columns)
            query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - collection is validated
            await conn.executemany(query, [[_to_db_value(row[key]) for key in columns] for row in rows])

        logger.info("Created records", extra={"collection": collection, "count": len(rows)})
        return len(rows)
    except Exception as e:
        raise _wrap_error(e, operation="create_records", collection=collection) from e


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch a single record by ID, raising KeyError if not found."""
    record = await get_first_record(collection=collection, where={"id": record_id})
    if record is None:
        msg = f"Record not found in {collection}: {record_id}"
        raise KeyError(msg)
    return record


async def get_first_record(*, collection: str, where: dict[str, Any]) -> dict[str, Any] | None:
    """Return the first record matching all equality filters, or None."""
    _validate_collection_name(collection)
    where_clause, params = _build_where(where)
    try:
        async with transaction() as conn:
            query = f"SELECT * FROM {collection} {where_clause} LIMIT 1"  # noqa: S608 - collection is validated
            cursor = await conn.execute(query, params)
            row = await cursor.fetchone()
            if row is None:
                return None
            return _rows_to_records(cursor, [row])[0]
    except Exception as e:
        raise _wrap_error(e, operation="get_first_record", collection=collection) from e


async def list_records(
    *,
    collection: str,
    where: dict[str, Any] | None = None,
    where_in: dict[str, list[Any]] | None = None,
    sort: str = "id ASC",
) -> list[dict[str, Any]]:
    """List records matching equality and IN filters, in a single query."""
    _validate_collection_name(collection)
    if where_in and any(not values for values in where_in.values()):
        return []

    where_clause, params = _build_where(where, where_in)
    try:
        async with transaction() as conn:
            query = f"SELECT * FROM {collection} {where_clause} ORDER BY {_safe_sort(sort)}"  # noqa: S608 - collection is validated
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            records = _rows_to_records(cursor, rows)

        logger.info("Listed records", extra={"collection": collection, "count": len(records)})
        return records
    except Exception as e:
        raise _wrap_error(e, operation="list_records", collection=collection) from e


async def update_where(*, collection: str, where: dict[str, Any], data: dict[str, Any]) -> int:
    """Update every record matching the filters and return the affected-row count.

    A zero count means nothing matched (missing id or a filter such as the
    owner did not match); callers decide how to report that.
    """
    if not data:
        msg = "Empty update payload"
        raise ValueError(msg)
    if not where:
        msg = "Refusing to update without a filter"
        raise ValueError(msg)

    _validate_collection_name(collection)
    _validate_field_names(data)
    where_clause, where_params = _build_where(where)
    try:
        async with transaction() as conn:
            set_clause = ", ".join(f"{key} = ?" for key in data)
            values = [_to_db_value(value) for value in data.values()] + where_params

            query = f"UPDATE {collection} SET {set_clause} {where_clause}"  # noqa: S608 - collection is validated
            cursor = await conn.execute(query, values)
            changed = cursor.rowcount

        logger.info("Updated records", extra={"collection": collection, "changed": changed})
        return changed
    except Exception as e:
        raise _wrap_error(e, operation="update_where", collection=collection) from e


async def delete_where(
    *,
    collection: str,
    where: dict[str, Any] | None = None,
    where_in: dict[str, list[Any]] | None = None,
) -> int:
    """Delete every record matching the filters and return the affected-row count."""
    if not where and not where_in:
        msg = "Refusing to delete without a filter"
        raise ValueError(msg)
    _validate_collection_name(collection)
    if where_in and any(not values for values in where_in.values()):
        return 0

    where_clause, params = _build_where(where, where_in)
    try:
        async with transaction() as conn:
            query = f"DELETE FROM {collection} {where_clause}"  # noqa: S608 - collection is validated
            cursor = await conn.execute(query, params)
            deleted = cursor.rowcount

        logger.info("Deleted records", extra={"collection": collection, "deleted": deleted})
        return deleted
    except Exception as e:
        raise _wrap_error(e, operation="delete_where", collection=collection) from e


async def sum_field(*, collection: str, field: str, where: dict[str, Any]) -> float:
    """Return the sum of a numeric column over matching records (0.0 when none match)."""
    _validate_collection_name(collection)
    _validate_field_names([field])
    where_clause, params = _build_where(where)
    try:
        async with transaction() as conn:
            query = f"SELECT TOTAL({field}) FROM {collection} {where_clause}"  # noqa: S608 - collection is validated
            cursor = await conn.execute(query, params)
            row = await cursor.fetchone()
            return float(row[0]) if row else 0.0
    except Exception as e:
        raise _wrap_error(e, operation="sum_field", collection=collection) from e
