#!/usr/bin/env python3
"""
Create a demo profile and print a bearer token for it.

Usage:
    python scripts/create_demo_user.py [email]
"""
import asyncio
import sys
import uuid

from swiftnotes.config import settings
from swiftnotes.db import AsyncSessionLocal, engine
from swiftnotes.exceptions import ConflictError
from swiftnotes.logging_config import setup_logging
from swiftnotes.services.profile_service import create_profile
from swiftnotes.utils.jwt import create_access_token

setup_logging(settings.LOG_LEVEL)

DEMO_USER_NAMESPACE = uuid.UUID("6f1c2a4e-2b7d-4c39-9a55-0d7f3e8b1c20")


async def main(email: str) -> int:
    # Stable id per email so the script can be re-run
    user_id = str(uuid.uuid5(DEMO_USER_NAMESPACE, email))
    try:
        async with AsyncSessionLocal() as session:
            try:
                await create_profile(session, user_id, email=email, first_name="Demo", last_name="User")
                print(f"Created demo profile {user_id} for {email}")
            except ConflictError:
                print(f"Demo profile {user_id} already exists")
    finally:
        await engine.dispose()

    token = create_access_token({"sub": user_id, "email": email})
    print(f"Bearer token:\n{token}")
    return 0


if __name__ == "__main__":
    email = sys.argv[1] if len(sys.argv) > 1 else "demo@swiftnotes.local"
    sys.exit(asyncio.run(main(email)))
