"""Initial schema: admins, events, ticket tiers, registrations, check-ins.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LIVE_REGISTRATION = sa.text("status <> 'cancelled'")


def upgrade() -> None:
    # Admins table
    op.create_table(
        "admins",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_admins_id", "admins", ["id"])
    op.create_index("ix_admins_username", "admins", ["username"], unique=True)

    # Events table
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.String(64), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("time", sa.String(50), nullable=False, server_default=""),
        sa.Column("venue", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("image_url", sa.String(500), nullable=False, server_default=""),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("max_capacity", sa.Integer(), nullable=False, server_default=sa.text("1000")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("max_capacity >= 0", name="check_event_capacity_non_negative"),
    )
    op.create_index("ix_events_id", "events", ["id"])
    # Listing query: WHERE is_active ORDER BY date
    op.create_index("ix_events_active_date", "events", ["is_active", "date"])

    # Ticket tiers, ordered per event
    op.create_table(
        "ticket_tiers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.String(64), sa.ForeignKey("events.event_id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("seats", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.UniqueConstraint("event_id", "name", name="uq_ticket_tier_event_name"),
        sa.CheckConstraint("seats >= 0", name="check_tier_seats_non_negative"),
        sa.CheckConstraint("price >= 0", name="check_tier_price_non_negative"),
    )

    # Registrations table
    op.create_table(
        "registrations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("registration_id", sa.String(16), nullable=False, unique=True),
        sa.Column("event_id", sa.String(64), sa.ForeignKey("events.event_id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=False),
        sa.Column("organization", sa.String(255), nullable=False, server_default=""),
        sa.Column("designation", sa.String(255), nullable=False, server_default=""),
        sa.Column("registration_type", sa.String(20), nullable=False, server_default="online"),
        sa.Column("ticket_tier", sa.String(100), nullable=False),
        sa.Column("ticket_price", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("qr_payload", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="confirmed"),
        sa.Column("is_checked_in", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'checked_in')",
            name="check_registration_status",
        ),
        sa.CheckConstraint("registration_type IN ('online', 'kiosk')", name="check_registration_type"),
        sa.CheckConstraint(
            "(is_checked_in AND checked_in_at IS NOT NULL AND status = 'checked_in') OR "
            "(NOT is_checked_in AND checked_in_at IS NULL AND status <> 'checked_in')",
            name="check_checked_in_consistent",
        ),
    )
    op.create_index("ix_registrations_id", "registrations", ["id"])
    op.create_index("ix_registrations_event_id", "registrations", ["event_id"])
    op.create_index("ix_registrations_email", "registrations", ["email"])
    # Per-tier seat count: WHERE event_id = ? AND ticket_tier = ?
    op.create_index("ix_registrations_event_tier", "registrations", ["event_id", "ticket_tier"])
    # One live registration per (event, email); cancelled rows free the email.
    # Also the backstop for two concurrent registrations with the same email.
    op.create_index(
        "uq_registration_event_email_live",
        "registrations",
        ["event_id", "email"],
        unique=True,
        postgresql_where=LIVE_REGISTRATION,
    )

    # Check-ins table, append-only
    op.create_table(
        "checkins",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("checkin_id", sa.String(64), nullable=False, unique=True),
        sa.Column(
            "registration_id",
            sa.String(16),
            sa.ForeignKey("registrations.registration_id"),
            nullable=False,
            unique=True,
        ),
        sa.Column("event_id", sa.String(64), sa.ForeignKey("events.event_id"), nullable=False),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("checked_in_by", sa.String(100), nullable=False, server_default="system"),
    )
    op.create_index("ix_checkins_id", "checkins", ["id"])
    # Dashboard: recent check-ins and today's hourly histogram per event
    op.create_index("ix_checkins_event_time", "checkins", ["event_id", "checked_in_at"])


def downgrade() -> None:
    op.drop_table("checkins")
    op.drop_table("registrations")
    op.drop_table("ticket_tiers")
    op.drop_table("events")
    op.drop_table("admins")
