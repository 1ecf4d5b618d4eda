#!/usr/bin/env python3
"""Create the SQLite schema for the task store."""

import asyncio

from opsboard.core import db_client
from opsboard.core.config import settings
from opsboard.core.logging import configure_logfire


async def main() -> None:
    configure_logfire()
    await db_client.init_db(db_path=settings.sqlite_db_path)
    await db_client.close_connection(db_path=settings.sqlite_db_path)


if __name__ == "__main__":
    asyncio.run(main())
