"""
Initialize Course Targets

Seeds the default enrollment target table (whole-year term) for the current
and next academic year. Does nothing when the current year already has targets.

Usage:
    cd apps/api
    python scripts/init_course_targets.py
"""

import asyncio
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from app.core.config import settings
from app.core.database import async_session_maker, close_db
from app.modules.course_targets.service import current_academic_year, seed_defaults


async def init_course_targets() -> None:
    current_year = current_academic_year()
    years = [current_year, str(int(current_year) + 1)]

    async with async_session_maker() as db:
        written = await seed_defaults(db, settings.default_course_targets, years)

    if not written:
        print(f"Course targets already exist for {current_year}, nothing to do")
    else:
        for year, count in written.items():
            print(f"[OK] {count} course targets created for {year}")

    await close_db()


if __name__ == "__main__":
    asyncio.run(init_course_targets())
