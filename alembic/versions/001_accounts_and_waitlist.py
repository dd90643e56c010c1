"""Create accounts and waitlist tables.

Startup runs Base.metadata.create_all before Alembic, so both tables may already exist;
creation is skipped in that case.

Revision ID: 001_accounts_and_waitlist
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_accounts_and_waitlist"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    existing = set(sa.inspect(op.get_bind()).get_table_names())

    if "accounts" not in existing:
        op.create_table(
            "accounts",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("identity_ref", sa.String(), nullable=False),
            sa.Column("tier", sa.String(), nullable=False, server_default="free"),
            sa.Column("status", sa.String(), nullable=False, server_default="active"),
            sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("billing_customer_ref", sa.String(), nullable=True),
            sa.Column("billing_subscription_ref", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        )
        op.create_index("ix_accounts_id", "accounts", ["id"])
        op.create_index("ix_accounts_identity_ref", "accounts", ["identity_ref"], unique=True)
        op.create_index("ix_accounts_billing_customer_ref", "accounts", ["billing_customer_ref"], unique=True)
        print("✅ Created accounts table")

    if "waitlist" not in existing:
        op.create_table(
            "waitlist",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("email", sa.String(), nullable=False),
            sa.Column("name", sa.String(), nullable=True),
            sa.Column("tier_interest", sa.String(), nullable=False, server_default="pro"),
            sa.Column("source", sa.String(), nullable=False, server_default="website"),
            sa.Column("status", sa.String(), nullable=False, server_default="pending"),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        )
        op.create_index("ix_waitlist_id", "waitlist", ["id"])
        op.create_index("ix_waitlist_email", "waitlist", ["email"], unique=True)
        print("✅ Created waitlist table")


def downgrade() -> None:
    op.drop_table("waitlist")
    op.drop_table("accounts")
