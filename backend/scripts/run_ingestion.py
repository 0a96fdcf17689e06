#!/usr/bin/env python3
"""One-off: run a single schedule ingestion and print the report.
Usage (from backend/): python scripts/run_ingestion.py [--now 2026-10-18T06:00:00]
Do not run while the API scheduler may be running an ingestion."""
import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timezone

from gymplan.api.deps import build_ingestion_pipeline
from gymplan.db.session import init_db
from gymplan.services.http_client import close_http_client, init_http_client
from gymplan.services.schedule_store import ScheduleStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)


async def main(now: datetime | None) -> int:
    await init_db()
    init_http_client()
    try:
        report = await build_ingestion_pipeline(ScheduleStore()).run(now=now)
    finally:
        await close_http_client()
    print(json.dumps(report.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False))
    return 0 if report.succeeded else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--now", help="ISO timestamp to use as the current time (UTC if naive)")
    args = parser.parse_args()
    now = None
    if args.now:
        now = datetime.fromisoformat(args.now)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
    sys.exit(asyncio.run(main(now)))
