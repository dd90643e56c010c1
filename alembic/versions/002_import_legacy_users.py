"""Copy rows from the legacy Supabase `users` table into `accounts`.

The first deployment kept subscriptions in a `users` table keyed by clerk_user_id.
Rows already present in `accounts` are left alone, so this is safe to re-run.
No-op on databases that never had the legacy table.

Revision ID: 002_import_legacy_users
Revises: 001_accounts_and_waitlist
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "002_import_legacy_users"
down_revision: Union[str, None] = "001_accounts_and_waitlist"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LEGACY_COLUMNS = {
    "clerk_user_id",
    "subscription_tier",
    "subscription_status",
    "usage_count",
    "stripe_customer_id",
    "stripe_subscription_id",
}


def upgrade() -> None:
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    if "users" not in inspector.get_table_names():
        return

    columns = {column["name"] for column in inspector.get_columns("users")}
    if not LEGACY_COLUMNS.issubset(columns):
        print("⚠️ users table does not look like the legacy schema, skipping import")
        return

    result = conn.execute(sa.text("""
        INSERT INTO accounts (
            identity_ref, tier, status, usage_count,
            billing_customer_ref, billing_subscription_ref
        )
        SELECT
            u.clerk_user_id,
            COALESCE(u.subscription_tier, 'free'),
            COALESCE(u.subscription_status, 'active'),
            COALESCE(u.usage_count, 0),
            u.stripe_customer_id,
            u.stripe_subscription_id
        FROM users u
        WHERE NOT EXISTS (
            SELECT 1 FROM accounts a WHERE a.identity_ref = u.clerk_user_id
        )
    """))
    print(f"✅ Imported {result.rowcount} legacy users into accounts")


def downgrade() -> None:
    """No-op downgrade (legacy table is never modified)."""
    pass
