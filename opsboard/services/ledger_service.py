"""Read access to tasks, completions and locations, plus the streak row write.

Rows are converted to typed domain models at this boundary. A row that fails
validation is logged and skipped rather than failing the whole request, since
scoring one bad row as "no contribution" is always preferable to no dashboard.
"""

import logging
from datetime import UTC, date, datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from opsboard.core import db_client
from opsboard.core.config import Constants
from opsboard.core.db_client import sanitize_param
from opsboard.core.logging import span
from opsboard.domain.completion import Completion
from opsboard.domain.location import Location
from opsboard.domain.streak import StreakRecord
from opsboard.domain.task import Task


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


async def _list_all_records(*, collection: str, filter_query: str = "", sort: str = "") -> list[dict[str, Any]]:
    """Fetch every matching row, following pagination until a short page."""
    per_page = Constants.DEFAULT_PER_PAGE_LIMIT
    records: list[dict[str, Any]] = []
    page = 1
    while True:
        batch = await db_client.list_records(
            collection=collection,
            filter_query=filter_query,
            sort=sort,
            page=page,
            per_page=per_page,
        )
        records.extend(batch)
        if len(batch) < per_page:
            return records
        page += 1


def _to_models(rows: list[dict[str, Any]], model: type[ModelT], collection: str) -> list[ModelT]:
    items = []
    for row in rows:
        try:
            items.append(model.model_validate(row))
        except ValidationError as e:
            logger.error("Skipping invalid %s row %s: %s", collection, row.get("id"), e)
    return items


async def list_tasks(*, tenant_id: str | None = None) -> list[Task]:
    """List all tasks, optionally restricted to one tenant."""
    with span("ledger_service.list_tasks"):
        filter_query = f'tenant_id = "{sanitize_param(tenant_id)}"' if tenant_id else ""
        rows = await _list_all_records(collection="tasks", filter_query=filter_query)
        tasks = _to_models(rows, Task, "tasks")
        logger.info("Loaded %d tasks", len(tasks), extra={"tenant_id": tenant_id})
        return tasks


async def list_completions(
    *,
    location_id: str | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[Completion]:
    """List completions, optionally for one location and an inclusive date range.

    Args:
        location_id: Restrict to this location
        start: First completed_date to include
        end: Last completed_date to include

    Returns:
        Completion models ordered by completion date
    """
    with span("ledger_service.list_completions"):
        filters = []
        if location_id:
            filters.append(f'location_id = "{sanitize_param(location_id)}"')
        if start:
            filters.append(f'completed_date >= "{start.isoformat()}"')
        if end:
            filters.append(f'completed_date <= "{end.isoformat()}"')

        rows = await _list_all_records(
            collection="task_completions",
            filter_query=" && ".join(filters),
            sort="completed_date ASC",
        )
        completions = _to_models(rows, Completion, "task_completions")
        logger.info(
            "Loaded %d completions",
            len(completions),
            extra={
                "location_id": location_id,
                "start": start.isoformat() if start else None,
                "end": end.isoformat() if end else None,
            },
        )
        return completions


async def list_locations(*, tenant_id: str | None = None, include_inactive: bool = False) -> list[Location]:
    """List locations (active only unless `include_inactive`)."""
    with span("ledger_service.list_locations"):
        filters = []
        if not include_inactive:
            filters.append('is_active = "true"')
        if tenant_id:
            filters.append(f'tenant_id = "{sanitize_param(tenant_id)}"')

        rows = await _list_all_records(collection="locations", filter_query=" && ".join(filters))
        return _to_models(rows, Location, "locations")


async def get_streak_record(location_id: str) -> StreakRecord | None:
    """Fetch the stored streak row for a location, or None if it does not exist or cannot be read."""
    row = await db_client.get_first_record(
        collection="streaks",
        filter_query=f'location_id = "{sanitize_param(location_id)}"',
    )
    if row is None:
        return None

    try:
        return StreakRecord.model_validate(row)
    except ValidationError as e:
        logger.error("Unreadable streak row for location %s, treating as missing: %s", location_id, e)
        return None


async def upsert_streak(record: StreakRecord) -> StreakRecord:
    """Write a location's streak row in a single atomic statement."""
    now = datetime.now(UTC).isoformat()
    data = {
        **record.model_dump(),
        "created_at": now,
        "updated_at": now,
    }
    stored = await db_client.upsert_record(collection="streaks", data=data, conflict_key="location_id")
    return StreakRecord.model_validate(stored)
