"""Pure Python in-memory database for unit testing."""

import copy
import operator
import re
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any

from opsboard.core.db_client import _to_sql_value, unescape_param


_OPERATORS = {
    "=": operator.eq,
    "!=": operator.ne,
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
}
_COMPARISON = re.compile(r"""^(\w+)\s*(!=|>=|<=|=|>|<)\s*(['"])(.*)\3$""")


class InMemoryDBClient:
    """Pure Python in-memory database for unit testing.

    Mirrors the keyword-only interface of opsboard.core.db_client without
    touching SQLite. Values are stored the way SQLite would bind them, so dates
    come back as ISO strings. Failures raise RuntimeError like the real client.
    """

    def __init__(self):
        """Initialize empty in-memory database."""
        self._collections: dict[str, list[dict[str, Any]]] = {}
        self._id_counter = 1000
        self.transactions = 0

    def _rows(self, collection: str) -> list[dict[str, Any]]:
        return self._collections.setdefault(collection, [])

    async def create_record(self, *, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        """Create a new record, assigning an id when none is given.

        Raises:
            RuntimeError: If data is not a dictionary
        """
        if not isinstance(data, dict):
            msg = f"Failed to create record in {collection}: data must be a dictionary, got {type(data)}"
            raise RuntimeError(msg)

        record_id = str(self._id_counter)
        self._id_counter += 1
        record = {key: _to_sql_value(value) for key, value in {"id": record_id, **data}.items()}
        self._rows(collection).append(record)
        return copy.deepcopy(record)

    async def upsert_record(
        self,
        *,
        collection: str,
        data: dict[str, Any],
        conflict_key: str,
        insert_only: Iterable[str] = ("created_at",),
    ) -> dict[str, Any]:
        """Insert a record, or update the one sharing `conflict_key`."""
        if conflict_key not in data:
            msg = f"Upsert payload is missing its conflict key '{conflict_key}'"
            raise ValueError(msg)

        values = {key: _to_sql_value(value) for key, value in data.items()}
        for record in self._rows(collection):
            if record.get(conflict_key) == values[conflict_key]:
                skip = set(insert_only)
                record.update({key: value for key, value in values.items() if key not in skip})
                return copy.deepcopy(record)

        self._rows(collection).append(values)
        return copy.deepcopy(values)

    async def list_records(
        self,
        *,
        collection: str,
        page: int = 1,
        per_page: int = 50,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]:
        """List records with optional filtering, `field ASC|DESC` sorting, and pagination.

        Raises:
            RuntimeError: For invalid filter syntax
        """
        try:
            records = [r for r in self._rows(collection) if self._matches(filter_query, r)]
        except ValueError as e:
            msg = f"Failed to list records from {collection}: {e}"
            raise RuntimeError(msg) from e

        if sort:
            records = self._apply_sort(records, sort)

        start_idx = (page - 1) * per_page
        return [copy.deepcopy(r) for r in records[start_idx : start_idx + per_page]]

    async def get_first_record(self, *, collection: str, filter_query: str) -> dict[str, Any] | None:
        """Get the first matching record or None."""
        records = await self.list_records(collection=collection, filter_query=filter_query, per_page=1)
        return records[0] if records else None

    @asynccontextmanager
    async def transaction(self, *, db_path: str | None = None) -> AsyncIterator["InMemoryDBClient"]:
        """Count transactions; in-memory writes need no isolation."""
        self.transactions += 1
        yield self

    def _matches(self, filter_str: str, record: dict[str, Any]) -> bool:
        """Evaluate `field op "value" && ...` against a record.

        Raises:
            ValueError: For invalid filter syntax
        """
        if not filter_str.strip():
            return True

        for raw_part in filter_str.split("&&"):
            match = _COMPARISON.match(raw_part.strip())
            if not match:
                msg = f"Invalid filter syntax: {raw_part.strip()}"
                raise ValueError(msg)

            field, op, _, raw_value = match.groups()
            value = unescape_param(raw_value)
            actual = record.get(field)
            if value.lower() in ("true", "false"):
                if not _OPERATORS[op](bool(actual), value.lower() == "true"):
                    return False
                continue
            if actual is None:
                return False
            if not _OPERATORS[op](str(actual), value):
                return False
        return True

    def _apply_sort(self, records: list[dict], sort: str) -> list[dict]:
        """Sort records by `field [ASC|DESC]`, with missing values first."""
        parts = sort.split()
        field = parts[0]
        reverse = len(parts) > 1 and parts[1].upper() == "DESC"
        return sorted(records, key=lambda r: str(r.get(field) or ""), reverse=reverse)
