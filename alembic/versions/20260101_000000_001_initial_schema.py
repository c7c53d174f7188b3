"""Initial schema: staff, patients, clinician catalog, appointments,
notes, notifications, messages and audit events.

Revision ID: 001
Revises:
Create Date: 2026-01-01 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _soft_delete() -> list[sa.Column]:
    return [
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create initial database schema."""

    # Staff login accounts
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        *_soft_delete(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_is_deleted", "users", ["is_deleted"])

    # Patients
    op.create_table(
        "patients",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("upi", sa.String(20), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("care_pathway", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="Active"),
        sa.Column("care_pathway_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("assigned_urologist", sa.String(200), nullable=True),
        sa.Column("assigned_urologist_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("referred_by_gp_id", postgresql.UUID(as_uuid=False), nullable=True),
        *_timestamps(),
        *_soft_delete(),
        sa.ForeignKeyConstraint(
            ["assigned_urologist_id"],
            ["users.id"],
            name="fk_patients_assigned_urologist_id_users",
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["referred_by_gp_id"],
            ["users.id"],
            name="fk_patients_referred_by_gp_id_users",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_patients"),
        sa.UniqueConstraint("email", name="uq_patients_email"),
        sa.CheckConstraint(
            "(care_pathway = 'Discharge') = (status = 'Discharged')",
            name="ck_patients_status_matches_pathway",
        ),
    )
    op.create_index("ix_patients_upi", "patients", ["upi"], unique=True)
    op.create_index("ix_patients_care_pathway", "patients", ["care_pathway"])
    op.create_index("ix_patients_status", "patients", ["status"])
    op.create_index("ix_patients_referred_by_gp_id", "patients", ["referred_by_gp_id"])
    op.create_index("ix_patients_is_deleted", "patients", ["is_deleted"])

    # Bookable clinician catalog
    op.create_table(
        "clinician_profiles",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("specialization", sa.String(100), nullable=False, server_default="Urology"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        *_soft_delete(),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_clinician_profiles_user_id_users",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_clinician_profiles"),
        sa.UniqueConstraint("user_id", name="uq_clinician_profiles_user_id"),
    )
    op.create_index("ix_clinician_profiles_email", "clinician_profiles", ["email"])
    op.create_index("ix_clinician_profiles_is_deleted", "clinician_profiles", ["is_deleted"])

    # Appointments
    op.create_table(
        "appointments",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("patient_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("clinician_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("clinician_name", sa.String(200), nullable=False),
        sa.Column("appointment_type", sa.String(30), nullable=False, server_default="urologist"),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("appointment_time", sa.Time(), nullable=False),
        sa.Column("status", sa.String(30), nullable=False, server_default="scheduled"),
        sa.Column("booking_source", sa.String(30), nullable=False, server_default="staff_booked"),
        sa.Column("is_overbooked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=False), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["patient_id"],
            ["patients.id"],
            name="fk_appointments_patient_id_patients",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["clinician_id"],
            ["clinician_profiles.id"],
            name="fk_appointments_clinician_id_clinician_profiles",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["created_by"],
            ["users.id"],
            name="fk_appointments_created_by_users",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_appointments"),
    )
    op.create_index("ix_appointments_patient_id", "appointments", ["patient_id"])
    op.create_index("ix_appointments_clinician_id", "appointments", ["clinician_id"])
    op.create_index("ix_appointments_appointment_date", "appointments", ["appointment_date"])
    op.create_index("ix_appointments_status", "appointments", ["status"])
    # One active, non-overbooked appointment per clinician slot
    op.create_index(
        "uq_appointments_active_slot",
        "appointments",
        ["clinician_id", "appointment_date", "appointment_time"],
        unique=True,
        postgresql_where=sa.text(
            "status IN ('scheduled', 'confirmed') AND is_overbooked = false"
        ),
    )

    # Clinical notes
    op.create_table(
        "patient_notes",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("patient_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("note_type", sa.String(50), nullable=False),
        sa.Column("note_content", sa.Text(), nullable=False),
        sa.Column("author_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("author_name", sa.String(200), nullable=False),
        sa.Column("author_role", sa.String(50), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["patient_id"],
            ["patients.id"],
            name="fk_patient_notes_patient_id_patients",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["author_id"],
            ["users.id"],
            name="fk_patient_notes_author_id_users",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_patient_notes"),
    )
    op.create_index("ix_patient_notes_patient_id", "patient_notes", ["patient_id"])
    op.create_index("ix_patient_notes_note_type", "patient_notes", ["note_type"])

    # In-app notifications
    op.create_table(
        "notifications",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("type", sa.String(50), nullable=False, server_default="general"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("patient_name", sa.String(255), nullable=True),
        sa.Column("patient_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("priority", sa.String(20), nullable=False, server_default="normal"),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("metadata", postgresql.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_notifications_user_id_users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["patient_id"],
            ["patients.id"],
            name="fk_notifications_patient_id_patients",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_notifications"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_is_read", "notifications", ["is_read"])

    # Outbound message log
    op.create_table(
        "messages",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("recipient_user_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("patient_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("template_code", sa.String(50), nullable=True),
        sa.Column("channel", sa.String(20), nullable=False, server_default="email"),
        sa.Column("recipient_address", sa.String(255), nullable=False),
        sa.Column("subject", sa.String(255), nullable=True),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("html_body", sa.Text(), nullable=True),
        sa.Column("status", sa.String(30), nullable=False, server_default="pending"),
        sa.Column("provider", sa.String(50), nullable=True),
        sa.Column("provider_message_id", sa.String(255), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("metadata", postgresql.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["recipient_user_id"],
            ["users.id"],
            name="fk_messages_recipient_user_id_users",
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["patient_id"],
            ["patients.id"],
            name="fk_messages_patient_id_patients",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_messages"),
    )
    op.create_index("ix_messages_recipient_user_id", "messages", ["recipient_user_id"])
    op.create_index("ix_messages_patient_id", "messages", ["patient_id"])
    op.create_index("ix_messages_status", "messages", ["status"])

    # Audit events
    op.create_table(
        "audit_events",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("actor_type", sa.String(50), nullable=False),
        sa.Column("actor_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("actor_email", sa.String(255), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("action_category", sa.String(50), nullable=True),
        sa.Column("entity_type", sa.String(100), nullable=False),
        sa.Column("entity_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("metadata", postgresql.JSON(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("request_id", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_audit_events"),
    )
    op.create_index("ix_audit_events_action", "audit_events", ["action"])
    op.create_index("ix_audit_events_entity_id", "audit_events", ["entity_id"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("audit_events")
    op.drop_table("messages")
    op.drop_table("notifications")
    op.drop_table("patient_notes")
    op.drop_index("uq_appointments_active_slot", table_name="appointments")
    op.drop_table("appointments")
    op.drop_table("clinician_profiles")
    op.drop_table("patients")
    op.drop_table("users")
