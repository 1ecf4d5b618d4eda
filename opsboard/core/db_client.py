"""SQLite database client wrapper for the task store."""

import asyncio
import json
import logging
import re
import threading
import uuid
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import date, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from opsboard.core.config import settings


logger = logging.getLogger(__name__)


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding in filter queries via json.dumps."""
    return json.dumps(str(value))[1:-1]


def unescape_param(value: str) -> str:
    """Reverse sanitize_param, leaving values it did not produce unchanged."""
    try:
        return json.loads(f'"{value}"')
    except json.JSONDecodeError:
        return value


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


def _to_sql_value(value: Any) -> Any:
    """Convert a Python value to something sqlite3 can bind."""
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, set | frozenset):
        return json.dumps(sorted(value, key=str))
    if isinstance(value, dict | list | tuple):
        return json.dumps(value)
    return value


_OPERATORS = {"=": "=", "!=": "!=", ">": ">", "<": "<", ">=": ">=", "<=": "<="}
_COMPARISON = re.compile(r"""^(\w+)\s*(!=|>=|<=|=|>|<)\s*(['"])(.*)\3$""")


def parse_filter(filter_query: str) -> tuple[str, list[Any]]:
    """Parse `field op "value" && ...` filter syntax into a WHERE clause and parameters.

    Values are bound as text, except "true"/"false" which bind as 1/0 to match
    how boolean columns are stored.
    """
    if not filter_query.strip():
        return "", []

    conditions = []
    params: list[Any] = []
    for raw_part in filter_query.split("&&"):
        match = _COMPARISON.match(raw_part.strip())
        if not match:
            msg = f"Invalid filter syntax: {raw_part.strip()}"
            raise ValueError(msg)

        field, op, _, raw_value = match.groups()
        value = unescape_param(raw_value)
        conditions.append(f"{field} {_OPERATORS[op]} ?")
        lowered = value.lower()
        params.append(int(lowered == "true") if lowered in ("true", "false") else value)

    return " AND ".join(conditions), params


def _rows_to_records(cursor: aiosqlite.Cursor, rows: Iterable[Any]) -> list[dict[str, Any]]:
    columns = [description[0] for description in cursor.description]
    return [dict(zip(columns, row, strict=True)) for row in rows]


_db_connections: dict[tuple[int, int, str], aiosqlite.Connection] = {}
_db_lock = asyncio.Lock()

# Held for the whole of a read-modify-write; writes made inside it skip their own commit
_write_lock = asyncio.Lock()
_in_transaction: ContextVar[bool] = ContextVar("opsboard_db_in_transaction", default=False)


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Get or create a cached connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop = asyncio.get_running_loop()
    loop_id = id(loop)
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key in _db_connections:
        return _db_connections[cache_key]

    async with _db_lock:
        # Double-check after acquiring lock
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(str(path))
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
    if conn is None:
        return

    try:
        await conn.close()
        logger.info("Closed SQLite connection", extra={"db_path": str(path)})
    except Exception as e:
        logger.warning("Error closing SQLite connection", extra={"error": str(e), "db_path": str(path)})


async def init_db(*, db_path: str | None = None) -> None:
    """Initialize the database schema by delegating to schema.init_db()."""
    from opsboard.core import schema  # noqa: PLC0415 - schema imports this module

    await schema.init_db(db_path=db_path)


async def _commit(conn: aiosqlite.Connection) -> None:
    if not _in_transaction.get():
        await conn.commit()


@asynccontextmanager
async def transaction(*, db_path: str | None = None) -> AsyncIterator[aiosqlite.Connection]:
    """Run a read-modify-write atomically.

    Holds the process-wide write lock and an SQLite IMMEDIATE transaction, so a
    concurrent writer (in this process or another) waits until commit.

    Usage:
        async with db_client.transaction():
            row = await db_client.get_first_record(...)
            await db_client.upsert_record(...)
    """
    async with _write_lock:
        conn = await get_connection(db_path=db_path)
        await conn.execute("BEGIN IMMEDIATE")
        token = _in_transaction.set(True)
        try:
            yield conn
        except BaseException:
            await conn.rollback()
            logger.warning("Rolled back transaction")
            raise
        else:
            await conn.commit()
        finally:
            _in_transaction.reset(token)


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new record, assigning a UUID when no id is given, and return it."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        record = {"id": str(uuid.uuid4()), **data}
        columns = list(record.keys())
        columns_str = ", ".join(columns)
        placeholders_str = ", ".join("?" for _ in columns)

        query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - collection is validated
        await conn.execute(query, [_to_sql_value(record[key]) for key in columns])
        await _commit(conn)

        logger.info("Created record", extra={"collection": collection, "record_id": record["id"]})
        return {key: _to_sql_value(value) for key, value in record.items()}
    except Exception as e:
        if isinstance(e, aiosqlite.OperationalError) and "no such table" in str(e):
            msg = f"Table '{collection}' does not exist. Call init_db() first."
            logger.error("Table not found", extra={"collection": collection})
            raise RuntimeError(msg) from e
        logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to create record in {collection}: {e}"
        raise RuntimeError(msg) from e


async def upsert_record(
    *,
    collection: str,
    data: dict[str, Any],
    conflict_key: str,
    insert_only: Iterable[str] = ("created_at",),
) -> dict[str, Any]:
    """Insert a record, or update it in place when `conflict_key` already exists.

    Runs as a single INSERT ... ON CONFLICT DO UPDATE statement. Columns listed
    in `insert_only` are written on insert and left untouched on update.
    """
    if conflict_key not in data:
        msg = f"Upsert payload is missing its conflict key '{conflict_key}'"
        raise ValueError(msg)

    try:
        _validate_collection_name(collection)
        _validate_collection_name(conflict_key)
        conn = await get_connection()

        columns = list(data.keys())
        skip = {conflict_key, *insert_only}
        update_columns = [column for column in columns if column not in skip]
        for column in columns:
            _validate_collection_name(column)

        update_clause = ", ".join(f"{column} = excluded.{column}" for column in update_columns)
        conflict_action = f"DO UPDATE SET {update_clause}" if update_columns else "DO NOTHING"
        query = (
            f"INSERT INTO {collection} ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)}) "  # noqa: S608 - names are validated
            f"ON CONFLICT({conflict_key}) {conflict_action}"
        )
        await conn.execute(query, [_to_sql_value(data[key]) for key in columns])
        await _commit(conn)

        logger.info("Upserted record", extra={"collection": collection, "key": data[conflict_key]})
        record = await get_first_record(
            collection=collection,
            filter_query=f'{conflict_key} = "{sanitize_param(data[conflict_key])}"',
        )
        return record or data
    except Exception as e:
        logger.error("upsert_record_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to upsert record in {collection}: {e}"
        raise RuntimeError(msg) from e


async def list_records(
    *,
    collection: str,
    page: int = 1,
    per_page: int = 50,
    filter_query: str = "",
    sort: str = "",
) -> list[dict[str, Any]]:
    """List records with optional filtering, sorting, and pagination."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        where_clause, params = parse_filter(filter_query)
        if where_clause:
            where_clause = f"WHERE {where_clause}"

        # Only allow: column_name [ASC|DESC]
        safe_sort = "rowid ASC"
        if sort:
            sort_pattern = re.match(r"^[A-Za-z_][A-Za-z0-9_]*\s*(ASC|DESC)?$", sort.strip(), re.IGNORECASE)
            if sort_pattern:
                safe_sort = sort.strip()
            else:
                logger.warning("Invalid sort parameter, using default", extra={"sort": sort})

        offset = (page - 1) * per_page

        query = f"SELECT * FROM {collection} {where_clause} ORDER BY {safe_sort} LIMIT ? OFFSET ?"  # noqa: S608 - collection is validated
        params.extend([per_page, offset])

        cursor = await conn.execute(query, params)
        records = _rows_to_records(cursor, await cursor.fetchall())

        logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
        return records
    except Exception as e:
        logger.error("list_records_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to list records from {collection}: {e}"
        raise RuntimeError(msg) from e


async def get_first_record(*, collection: str, filter_query: str) -> dict[str, Any] | None:
    """Return the first record matching the filter, or None."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        where_clause, params = parse_filter(filter_query)
        if where_clause:
            query = f"SELECT * FROM {collection} WHERE {where_clause} LIMIT 1"  # noqa: S608 - collection is validated
        else:
            query = f"SELECT * FROM {collection} LIMIT 1"  # noqa: S608 - collection is validated

        cursor = await conn.execute(query, params)
        row = await cursor.fetchone()
        if row is None:
            return None

        return _rows_to_records(cursor, [row])[0]
    except Exception as e:
        logger.error(
            "get_first_record_failed", extra={"collection": collection, "filter_query": filter_query, "error": str(e)}
        )
        msg = f"Failed to get first record from {collection}: {e}"
        raise RuntimeError(msg) from e
