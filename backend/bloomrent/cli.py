"""Management CLI.

Usage:
    bloomrent serve [--host H] [--port P] [--reload]      # Run the API server
    bloomrent expire-invites                              # Expire overdue invites now
    bloomrent create-user EMAIL NAME PASSWORD [--role R]  # Create an account
"""

import argparse
import asyncio
import sys

import uvicorn
from sqlalchemy import func, select

from bloomrent.auth.password import hash_password
from bloomrent.database import async_session
from bloomrent.models.enums import UserRole
from bloomrent.models.user import User
from bloomrent.services.scheduler import run_invite_sweep


def serve(host: str, port: int, reload: bool) -> int:
    uvicorn.run("bloomrent.main:app", host=host, port=port, reload=reload)
    return 0


def expire_invites() -> int:
    count = asyncio.run(run_invite_sweep())
    print(f"Expired {count} invite(s)")
    return 0


async def _create_user(email: str, name: str, password: str, role: UserRole) -> str | None:
    async with async_session() as db:
        existing = await db.scalar(select(User.id).where(func.lower(User.email) == email))
        if existing:
            return None
        user = User(email=email, name=name, hashed_password=hash_password(password), role=role)
        db.add(user)
        await db.commit()
        return user.id


def create_user(email: str, name: str, password: str, role: str) -> int:
    if len(password) < 8:
        print("Password must be at least 8 characters")
        return 1
    user_id = asyncio.run(_create_user(email.strip().lower(), name, password, UserRole(role)))
    if user_id is None:
        print(f"A user with email {email} already exists")
        return 1
    print(f"Created {role} {email} ({user_id})")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="bloomrent")
    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("serve", help="run the API server")
    run.add_argument("--host", default="127.0.0.1")
    run.add_argument("--port", type=int, default=8000)
    run.add_argument("--reload", action="store_true")

    commands.add_parser("expire-invites", help="expire overdue pending/sent invites")

    create = commands.add_parser("create-user", help="create a user account")
    create.add_argument("email")
    create.add_argument("name")
    create.add_argument("password")
    create.add_argument(
        "--role", default=UserRole.OWNER.value, choices=[r.value for r in UserRole]
    )

    args = parser.parse_args(argv)
    if args.command == "serve":
        return serve(args.host, args.port, args.reload)
    if args.command == "expire-invites":
        return expire_invites()
    return create_user(args.email, args.name, args.password, args.role)


if __name__ == "__main__":
    sys.exit(main())
