#!/usr/bin/env python3
"""
Seed Permission Catalog
=======================

Installs the permission catalog from platform_config.yaml and, optionally,
the first SUPER_ADMIN account, printing a bearer token for it. Existing keys
and accounts are left untouched, so the script can be re-run after adding
entries to the YAML file.

Usage:
    python scripts/seed_permissions.py
    python scripts/seed_permissions.py --super-admin root@xploitarena.example
    python scripts/seed_permissions.py --database-url postgresql+asyncpg://localhost/arena_test
"""

import argparse
import asyncio
import sys
from pathlib import Path
from uuid import uuid4

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.access.domain import Account, Permission  # noqa: E402
from src.access.infrastructure import (  # noqa: E402
    SQLAlchemyAccountRepository,
    SQLAlchemyPermissionRepository,
    create_access_token,
)
from src.administration.infrastructure import PlatformConfigManager  # noqa: E402
from src.config import AccountRole, settings  # noqa: E402
from src.infrastructure.database import (  # noqa: E402
    close_database,
    create_tables,
    get_session_context,
    init_database,
)


async def seed(super_admin_email: str | None, database_url: str | None) -> None:
    config = PlatformConfigManager().load(settings.platform_config_path)

    init_database(database_url)
    import src.access.infrastructure.models  # noqa: F401
    import src.administration.infrastructure.models  # noqa: F401
    import src.audit.infrastructure.models  # noqa: F401
    import src.programs.infrastructure.models  # noqa: F401
    await create_tables()

    created = 0
    async with get_session_context() as session:
        permissions = SQLAlchemyPermissionRepository(session)
        for entry in config.seed_permissions:
            if await permissions.get_by_key(entry.key):
                continue
            await permissions.create(Permission(
                id=str(uuid4()),
                key=entry.key,
                category=entry.category,
                name=entry.name,
                description=entry.description,
            ))
            created += 1

        print(f"Permissions: {created} created, {len(config.seed_permissions) - created} already present")

        if super_admin_email:
            accounts = SQLAlchemyAccountRepository(session)
            account = await accounts.get_by_email(super_admin_email)
            if account:
                print(f"Account {super_admin_email} already exists")
            else:
                account = await accounts.create(Account(
                    id=str(uuid4()),
                    email=super_admin_email,
                    role=AccountRole.SUPER_ADMIN,
                    is_verified=True,
                ))
                print(f"Created SUPER_ADMIN {super_admin_email}")

            if account.is_active:
                token = create_access_token(account.id)
                print(f"Access token (valid {settings.jwt_expires_hours}h): {token}")

    await close_database()


def main():
    parser = argparse.ArgumentParser(description="Seed the permission catalog")
    parser.add_argument("--super-admin", dest="super_admin", help="Email of a SUPER_ADMIN to create")
    parser.add_argument("--database-url", dest="database_url", help="Overrides DATABASE_URL")
    args = parser.parse_args()
    asyncio.run(seed(args.super_admin, args.database_url))


if __name__ == "__main__":
    main()
