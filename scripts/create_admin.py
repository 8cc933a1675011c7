#!/usr/bin/env python3
"""
Create the first admin account, or promote an existing user to admin.

Run with:
    python scripts/create_admin.py admin@example.com 'a-strong-password' --first-name Grace --last-name Hopper
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from hirehub.domain.services.auth_service import hash_password
from hirehub.infrastructure.db.models import UserModel, UserRole
from hirehub.infrastructure.db.session import dispose_engine, get_session_factory
from hirehub.infrastructure.repositories import UserRepository


async def create_admin(email: str, password: str, first_name: str, last_name: str) -> str:
    session_factory = get_session_factory()
    async with session_factory() as session:
        users = UserRepository(session)
        user = await users.get_by_email(email.strip().lower())
        if user is not None:
            user.role = UserRole.ADMIN
            user.is_active = True
            await session.commit()
            print(f"Promoted existing user {user.id} to admin")
            return user.id

        user = UserModel(
            first_name=first_name,
            last_name=last_name,
            email=email.strip().lower(),
            hashed_password=hash_password(password),
            role=UserRole.ADMIN,
        )
        await users.add(user)
        await session.commit()
        print(f"Created admin {user.id}")
        return user.id


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--first-name", default="Admin")
    parser.add_argument("--last-name", default="User")
    args = parser.parse_args()

    async def run() -> None:
        try:
            await create_admin(args.email, args.password, args.first_name, args.last_name)
        finally:
            await dispose_engine()

    asyncio.run(run())


if __name__ == "__main__":
    main()
