#!/usr/bin/env python3
"""Print the weekly leaderboard for the week containing a date."""

import argparse
import asyncio
import logging
from datetime import date

from opsboard.core import db_client
from opsboard.core.logging import configure_logfire
from opsboard.services import leaderboard_service


logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


async def main(local_date: date, tenant_id: str | None) -> None:
    configure_logfire()
    try:
        leaderboard = await leaderboard_service.get_leaderboard(local_date, tenant_id=tenant_id)
    finally:
        await db_client.close_connection()

    logger.info("Week %s to %s", leaderboard.week_start.isoformat(), leaderboard.week_end.isoformat())
    for entry in leaderboard.entries:
        logger.info(
            f"#{entry.rank:<3} {entry.name} ({entry.store_number}) "
            f"{entry.completed_tasks}/{entry.total_tasks} tasks, {entry.completion_pct}%, {entry.total_points} pts"
        )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--date", type=date.fromisoformat, default=date.today(), help="Local date (YYYY-MM-DD)")
    parser.add_argument("--tenant", default=None, help="Restrict to one tenant")
    args = parser.parse_args()

    asyncio.run(main(args.date, args.tenant))
