"""kv_entries: flat key-value store with per-entry metadata and expiry.

Revision ID: 001_kv_entries
Revises:
Create Date: 2026-10-17
"""

from __future__ import annotations

from alembic import op


revision = "001_kv_entries"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        """
        CREATE TABLE kv_entries (
            key         TEXT PRIMARY KEY,
            value       TEXT NOT NULL,
            metadata    JSONB NOT NULL DEFAULT '{}'::jsonb,
            expires_at  TIMESTAMPTZ,
            updated_at  TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        """
    )
    op.execute(
        "CREATE INDEX idx_kv_entries_expires_at ON kv_entries (expires_at) "
        "WHERE expires_at IS NOT NULL"
    )


def downgrade() -> None:
    op.execute("DROP TABLE kv_entries")
