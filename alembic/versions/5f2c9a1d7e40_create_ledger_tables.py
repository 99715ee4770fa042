"""Create ledger tables

Revision ID: 5f2c9a1d7e40
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "5f2c9a1d7e40"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("concept", sa.Text(), nullable=False),
        sa.Column("amount_ars", sa.Numeric(precision=16, scale=2), nullable=False),
        sa.Column("amount_usd", sa.Numeric(precision=16, scale=2), nullable=False),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("type", sa.String(length=10), nullable=False),
        sa.Column("sentiment", sa.String(length=10), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=True),
        sa.Column("is_monthly_income", sa.Boolean(), server_default=sa.text("false"), nullable=False),
    )
    op.create_index("ix_transactions_user_id", "transactions", ["user_id"])
    op.create_index("ix_transactions_date", "transactions", ["date"])

    op.create_table(
        "investments",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("asset_name", sa.Text(), nullable=False),
        sa.Column("invested_ars", sa.Numeric(precision=16, scale=2), nullable=False),
        sa.Column("invested_usd", sa.Numeric(precision=16, scale=2), nullable=False),
        sa.Column("quantity", sa.Numeric(precision=24, scale=8), nullable=False),
        sa.Column("current_price_usd", sa.Numeric(precision=24, scale=8), nullable=True),
        sa.Column("investment_type", sa.String(length=12), server_default="traditional", nullable=False),
    )
    op.create_index("ix_investments_user_id", "investments", ["user_id"])

    op.create_table(
        "savings",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("concept", sa.Text(), nullable=False),
        sa.Column("amount_usd", sa.Numeric(precision=16, scale=2), nullable=False),
    )
    op.create_index("ix_savings_user_id", "savings", ["user_id"])


def downgrade() -> None:
    op.drop_table("savings")
    op.drop_table("investments")
    op.drop_table("transactions")
