#!/usr/bin/env python3
"""
Repair stored user preferences.

Rewrites every user_profiles.preferences value that is not a JSON object
(NULL, JSON text, double-encoded text) into its parsed object form.
Safe to run repeatedly; rows already in object form are left alone.

Usage:
    DATABASE_URL=postgresql+psycopg://... python scripts/repair_preferences.py
"""
import asyncio
import sys

from swiftnotes.config import settings
from swiftnotes.db import AsyncSessionLocal, engine
from swiftnotes.logging_config import setup_logging
from swiftnotes.services.preference_service import repair_stored_preferences

setup_logging(settings.LOG_LEVEL)


async def main() -> int:
    try:
        async with AsyncSessionLocal() as session:
            repaired = await repair_stored_preferences(session)
    finally:
        await engine.dispose()
    print(f"Repaired {repaired} profile(s)")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
