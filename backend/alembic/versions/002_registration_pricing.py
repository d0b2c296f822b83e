"""Registration pricing: quoted fee, currency and add-on packages.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PACKAGE_COLUMNS = (
    "accommodation_package",
    "victoria_falls_package",
    "boat_cruise_package",
    "dinner_gala_attendance",
)


def upgrade() -> None:
    with op.batch_alter_table("event_registrations") as batch:
        batch.add_column(sa.Column("currency", sa.String(8), nullable=True))
        batch.add_column(sa.Column("price_paid", sa.Numeric(10, 2), nullable=True))
        for name in PACKAGE_COLUMNS:
            batch.add_column(sa.Column(name, sa.Boolean(), nullable=False, server_default=sa.text("false")))
        batch.create_check_constraint(
            "check_registration_price_paid",
            "price_paid IS NULL OR price_paid >= 0",
        )


def downgrade() -> None:
    with op.batch_alter_table("event_registrations") as batch:
        batch.drop_constraint("check_registration_price_paid", type_="check")
        for name in reversed(PACKAGE_COLUMNS):
            batch.drop_column(name)
        batch.drop_column("price_paid")
        batch.drop_column("currency")
