"""Database seeding for the dashboard.

Creates the default roles and, optionally, the first administrator.
Run with ``dashboard-seed`` (or ``python -m dashboard.db.seed``).
"""

import argparse
import sys
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from dashboard.common.logger import get_logger, setup_logger
from dashboard.core.config import get_settings
from dashboard.core.rbac.roles import DEFAULT_ROLES
from dashboard.db.models import Role, User
from dashboard.db.session import Database

logger = get_logger(__name__)


def seed_default_roles(db: Session) -> dict[str, Role]:
    """
    Create the default roles.

    Idempotent: roles that already exist are returned untouched, so edits
    made by administrators survive re-seeding.

    Returns:
        Dict mapping role key to Role object
    """
    roles = {}

    for role_key, role_config in DEFAULT_ROLES.items():
        existing = db.query(Role).filter(Role.name == role_config["name"]).first()
        if existing:
            roles[role_key] = existing
            continue

        role = Role(
            name=role_config["name"],
            description=role_config["description"],
            permissions=list(role_config["permissions"]),
        )
        db.add(role)
        roles[role_key] = role
        logger.info("Created default role %s", role.name)

    db.flush()
    return roles


def seed_admin_user(db: Session, email: str, name: Optional[str] = None) -> User:
    """
    Create the first administrator, or reactivate and promote an existing user.

    Emails are stored lowercased; lookups compare case-insensitively.
    """
    admin_role = seed_default_roles(db)["admin"]
    email = email.strip().lower()

    user = db.query(User).filter(func.lower(User.email) == email).first()
    if user is None:
        user = User(email=email, name=name or email, role_id=admin_role.id, is_active=True)
        db.add(user)
        logger.info("Created administrator %s", email)
    else:
        user.role_id = admin_role.id
        user.is_active = True
        logger.info("Promoted existing user %s to administrator", email)

    db.flush()
    return user


def main(argv: Optional[list[str]] = None) -> int:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Seed default roles and the first administrator")
    parser.add_argument("--database-url", default=settings.database_url)
    parser.add_argument("--admin-email", default=settings.seed_admin_email)
    parser.add_argument("--admin-name", default=settings.seed_admin_name)
    parser.add_argument("--create-tables", action="store_true", help="Create tables without Alembic")
    args = parser.parse_args(argv)

    setup_logger(level=settings.log_level)
    database = Database.from_url(args.database_url)
    try:
        if args.create_tables:
            database.create_all()
        with database.session() as db:
            seed_default_roles(db)
            if args.admin_email:
                seed_admin_user(db, args.admin_email, args.admin_name)
            db.commit()
    finally:
        database.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
