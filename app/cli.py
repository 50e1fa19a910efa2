"""CLI commands for management tasks."""

import asyncio
import sys

from app.core.database import async_session_maker
from app.core.logging import configure_logging
from app.services.seed import ensure_platform_admin


async def create_platform_admin(
    email: str,
    password: str,
    first_name: str,
    last_name: str,
) -> None:
    """Create the initial platform admin."""
    async with async_session_maker() as db:
        admin, created = await ensure_platform_admin(
            db,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
        )

    if not created:
        print("Error: A platform admin already exists!")
        print(f"Platform admin: {admin.full_name} ({admin.email})")
        sys.exit(1)

    print("Platform admin created successfully!")
    print(f"  ID: {admin.id}")
    print(f"  Name: {admin.full_name}")
    print(f"  Email: {admin.email}")


def main() -> None:
    """CLI entry point."""
    configure_logging()

    if len(sys.argv) < 2:
        print("Usage: python -m app.cli <command>")
        print("Commands:")
        print("  create-platform-admin <email> <password> <first_name> <last_name>")
        sys.exit(1)

    command = sys.argv[1]

    if command == "create-platform-admin":
        if len(sys.argv) != 6:
            print(
                "Usage: python -m app.cli create-platform-admin "
                "<email> <password> <first_name> <last_name>"
            )
            sys.exit(1)

        _, _, email, password, first_name, last_name = sys.argv
        asyncio.run(create_platform_admin(email, password, first_name, last_name))
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
