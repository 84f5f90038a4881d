"""Grant the store admin role to a Supabase user.

POST /admin/roles needs an existing admin, so the first one is created here.

Usage:
    ENV_FILE=.env.prod python scripts/users/grant_admin.py <supabase-user-id>
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add project root to path to import libs
sys.path.append(str(Path(__file__).resolve().parents[2]))

from dotenv import load_dotenv

# MUST be done before importing libs that use get_settings()
project_root = Path(__file__).resolve().parents[2]
env_file = os.environ.get("ENV_FILE", ".env")
load_dotenv(project_root / env_file, override=True)

from sqlalchemy import select

from libs.db.config import AsyncSessionLocal
from services.store_service.models import AppRole, UserRole


async def grant_admin(user_id: str) -> None:
    async with AsyncSessionLocal() as session:
        result = await session.execute(
            select(UserRole).where(
                UserRole.user_id == user_id, UserRole.role == AppRole.ADMIN
            )
        )
        if result.scalar_one_or_none():
            print(f"✅ {user_id} is already an admin")
            return

        session.add(UserRole(user_id=user_id, role=AppRole.ADMIN))
        await session.commit()
        print(f"✅ Granted admin to {user_id}")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("user_id", help="Supabase auth user id (the JWT 'sub')")
    args = parser.parse_args()
    asyncio.run(grant_admin(args.user_id))


if __name__ == "__main__":
    main()
