"""Make audit_logs append-only

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-12

Installs triggers rejecting UPDATE and DELETE on audit_logs. PostgreSQL only;
other backends rely on the application never issuing either statement.
"""
from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: Union[str, Sequence[str], None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Reject any modification of existing audit entries."""
    if op.get_bind().dialect.name != "postgresql":
        return

    op.execute("""
        CREATE OR REPLACE FUNCTION prevent_audit_log_change()
        RETURNS TRIGGER AS $trigger$
        BEGIN
            RAISE EXCEPTION 'Audit logs are append-only (% on record %)', TG_OP, OLD.id;
        END;
        $trigger$ LANGUAGE plpgsql;
    """)

    op.execute("""
        CREATE TRIGGER audit_logs_prevent_update
        BEFORE UPDATE ON audit_logs
        FOR EACH ROW
        EXECUTE FUNCTION prevent_audit_log_change();
    """)

    op.execute("""
        CREATE TRIGGER audit_logs_prevent_delete
        BEFORE DELETE ON audit_logs
        FOR EACH ROW
        EXECUTE FUNCTION prevent_audit_log_change();
    """)


def downgrade() -> None:
    """Remove the append-only triggers."""
    if op.get_bind().dialect.name != "postgresql":
        return

    op.execute("DROP TRIGGER IF EXISTS audit_logs_prevent_update ON audit_logs;")
    op.execute("DROP TRIGGER IF EXISTS audit_logs_prevent_delete ON audit_logs;")
    op.execute("DROP FUNCTION IF EXISTS prevent_audit_log_change();")
