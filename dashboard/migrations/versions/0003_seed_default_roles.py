"""Seed default roles

Revision ID: 0003
Revises: 0002
Create Date: 2026-10-12

Creates the admin, editor and viewer roles if they are missing.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0003"
down_revision: Union[str, Sequence[str], None] = "0002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Frozen copy: later edits to the application defaults must not change history
DEFAULT_ROLES = {
    "admin": (
        "Full access to content and administration",
        [
            "manage_pages", "view_pages", "edit_own_content",
            "manage_files", "upload_files", "view_files",
            "manage_map_pages", "view_map_pages",
            "manage_settings", "manage_users", "manage_roles",
            "view_audit_logs", "delete_resources",
        ],
    ),
    "editor": (
        "Maintains pages, files and map pages",
        [
            "manage_pages", "view_pages", "edit_own_content",
            "manage_files", "upload_files", "view_files",
            "manage_map_pages", "view_map_pages",
        ],
    ),
    "viewer": (
        "Read-only access to published content",
        ["view_pages", "view_files", "view_map_pages"],
    ),
}


roles_table = sa.table(
    "roles",
    sa.column("name", sa.String),
    sa.column("description", sa.String),
    sa.column("permissions", sa.JSON),
)


def upgrade() -> None:
    conn = op.get_bind()
    for name, (description, permissions) in DEFAULT_ROLES.items():
        exists = conn.execute(
            sa.select(roles_table.c.name).where(roles_table.c.name == name)
        ).first()
        if exists:
            continue
        conn.execute(
            roles_table.insert().values(
                name=name, description=description, permissions=permissions
            )
        )


def downgrade() -> None:
    conn = op.get_bind()
    conn.execute(
        roles_table.delete().where(roles_table.c.name.in_(list(DEFAULT_ROLES)))
    )
