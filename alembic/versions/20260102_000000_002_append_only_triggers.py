"""Append-only triggers for patient_notes and audit_events.

Revision ID: 002_append_only
Revises: 001
Create Date: 2026-01-02 00:00:00.000000

Clinical notes and audit events are never edited or removed once
written. These PostgreSQL triggers reject UPDATE and DELETE on both
tables at the database level.
"""

from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002_append_only"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_PROTECTED_TABLES = ("patient_notes", "audit_events")


def upgrade() -> None:
    """Add immutability triggers."""

    op.execute("""
        CREATE OR REPLACE FUNCTION prevent_append_only_modification()
        RETURNS TRIGGER AS $$
        BEGIN
            IF TG_OP = 'UPDATE' THEN
                RAISE EXCEPTION '% rows are immutable and cannot be modified. ID: %', TG_TABLE_NAME, OLD.id;
            ELSIF TG_OP = 'DELETE' THEN
                RAISE EXCEPTION '% rows are immutable and cannot be deleted. ID: %', TG_TABLE_NAME, OLD.id;
            END IF;
            RETURN NULL;
        END;
        $$ LANGUAGE plpgsql;
    """)

    for table in _PROTECTED_TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS {table}_immutability_trigger ON {table}")
        op.execute(f"""
            CREATE TRIGGER {table}_immutability_trigger
            BEFORE UPDATE OR DELETE ON {table}
            FOR EACH ROW
            EXECUTE FUNCTION prevent_append_only_modification()
        """)

    op.execute("""
        COMMENT ON TABLE patient_notes IS
        'Append-only clinical notes. Protected by immutability trigger.';
    """)
    op.execute("""
        COMMENT ON TABLE audit_events IS
        'Append-only audit log. Protected by immutability trigger.';
    """)


def downgrade() -> None:
    """Remove immutability triggers."""
    for table in _PROTECTED_TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS {table}_immutability_trigger ON {table}")

    op.execute("DROP FUNCTION IF EXISTS prevent_append_only_modification()")
