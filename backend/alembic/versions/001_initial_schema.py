"""Initial schema: users, events, registrations, newsletter and ledger counters.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("phone_number", sa.String(32), nullable=True),
        sa.Column("role", sa.String(32), nullable=False, server_default=sa.text("'ordinary_user'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "role IN ('super_admin', 'finance_person', 'event_manager', 'ordinary_user')",
            name="check_user_role",
        ),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # Events table
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("max_attendees", sa.Integer(), nullable=True),
        sa.Column("current_attendees", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("image_url", sa.String(1000), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("featured", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("current_attendees >= 0", name="check_current_attendees_non_negative"),
        sa.CheckConstraint(
            "max_attendees IS NULL OR current_attendees <= max_attendees",
            name="check_attendees_within_capacity",
        ),
        sa.CheckConstraint("max_attendees IS NULL OR max_attendees > 0", name="check_max_attendees_positive"),
        sa.CheckConstraint("end_date >= start_date", name="check_event_dates_ordered"),
    )
    op.create_index("ix_events_id", "events", ["id"])
    # Public listings filter on upcoming events and always order by start date
    op.create_index("ix_events_start_date", "events", ["start_date"])

    # Registrations table
    op.create_table(
        "event_registrations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("registration_number", sa.String(16), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("payment_method", sa.String(20), nullable=True),
        sa.Column("has_paid", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("payment_evidence", sa.String(500), nullable=True),
        sa.Column("delegate_type", sa.String(20), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("organization", sa.String(255), nullable=True),
        sa.Column("position", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("group_size", sa.Integer(), nullable=True),
        sa.Column("group_payment_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("group_payment_currency", sa.String(8), nullable=True),
        sa.Column("organization_reference", sa.String(255), nullable=True),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("registration_number", name="uq_registration_number"),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'paid', 'completed', 'cancelled', 'failed')",
            name="check_registration_payment_status",
        ),
        sa.CheckConstraint(
            "payment_method IS NULL OR payment_method IN ('mobile', 'bank', 'cash', 'group_payment', 'org_paid')",
            name="check_registration_payment_method",
        ),
        sa.CheckConstraint(
            "delegate_type IS NULL OR delegate_type IN ('private', 'public', 'international')",
            name="check_registration_delegate_type",
        ),
        sa.CheckConstraint("group_size IS NULL OR group_size >= 1", name="check_registration_group_size"),
    )
    op.create_index("ix_event_registrations_id", "event_registrations", ["id"])
    op.create_index("ix_event_registrations_user_id", "event_registrations", ["user_id"])
    op.create_index("ix_event_registrations_event_id", "event_registrations", ["event_id"])
    # At most one active registration per (user, event); cancelled rows do not count
    op.create_index(
        "uq_active_registration_user_event",
        "event_registrations",
        ["user_id", "event_id"],
        unique=True,
        postgresql_where=sa.text("payment_status <> 'cancelled'"),
        sqlite_where=sa.text("payment_status <> 'cancelled'"),
    )

    # Newsletter
    op.create_table(
        "newsletter_subscriptions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("subscribed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_newsletter_subscriptions_id", "newsletter_subscriptions", ["id"])
    op.create_index("ix_newsletter_subscriptions_email", "newsletter_subscriptions", ["email"], unique=True)

    # Ledger counters, seeded so the first registration number is 0001
    counters = op.create_table(
        "ledger_counters",
        sa.Column("name", sa.String(64), primary_key=True),
        sa.Column("value", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
    )
    op.bulk_insert(counters, [{"name": "event_registration_number", "value": 0}])


def downgrade() -> None:
    op.drop_table("ledger_counters")
    op.drop_table("newsletter_subscriptions")
    op.drop_index("uq_active_registration_user_event", table_name="event_registrations")
    op.drop_table("event_registrations")
    op.drop_table("events")
    op.drop_table("users")
