"""Sponsorship and exhibition applications.

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _application_columns() -> list:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("contact_person", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(32), nullable=False),
        sa.Column("website", sa.String(500), nullable=True),
        sa.Column("company_address", sa.Text(), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(8), nullable=False, server_default=sa.text("'USD'")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _status_checks(table: str) -> list:
    return [
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'paid')",
            name=f"check_{table}_status",
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'paid', 'cancelled')",
            name=f"check_{table}_payment_status",
        ),
        sa.CheckConstraint("amount >= 0", name=f"check_{table}_amount"),
    ]


def upgrade() -> None:
    op.create_table(
        "sponsorships",
        *_application_columns(),
        sa.Column("sponsorship_level", sa.String(20), nullable=False),
        sa.Column("special_requirements", sa.Text(), nullable=True),
        sa.Column("marketing_materials", sa.Text(), nullable=True),
        sa.CheckConstraint(
            "sponsorship_level IN ('platinum', 'gold', 'silver', 'bronze')",
            name="check_sponsorship_level",
        ),
        *_status_checks("sponsorship"),
    )
    op.create_index("ix_sponsorships_id", "sponsorships", ["id"])
    op.create_index("ix_sponsorships_event_id", "sponsorships", ["event_id"])

    op.create_table(
        "exhibitions",
        *_application_columns(),
        sa.Column("booth_size", sa.String(20), nullable=False, server_default=sa.text("'standard'")),
        sa.Column("products_services", sa.Text(), nullable=True),
        sa.Column("booth_requirements", sa.Text(), nullable=True),
        sa.Column("electrical_requirements", sa.Text(), nullable=True),
        sa.Column("internet_requirements", sa.Text(), nullable=True),
        sa.CheckConstraint(
            "booth_size IN ('standard', 'premium', 'custom')",
            name="check_exhibition_booth_size",
        ),
        *_status_checks("exhibition"),
    )
    op.create_index("ix_exhibitions_id", "exhibitions", ["id"])
    op.create_index("ix_exhibitions_event_id", "exhibitions", ["event_id"])


def downgrade() -> None:
    op.drop_table("exhibitions")
    op.drop_table("sponsorships")
