"""Create api_keys, provider_configs, usage_stats and api_call_logs tables"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "api_keys",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("providers", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_api_keys_key", "api_keys", ["key"], unique=True)

    op.create_table(
        "provider_configs",
        sa.Column("name", sa.String(length=50), primary_key=True),
        sa.Column("api_key", sa.String(length=512), nullable=True),
        sa.Column("base_url", sa.String(length=512), nullable=True),
        sa.Column("rate_limit", sa.Integer(), nullable=False, server_default="100"),
        sa.Column("timeout", sa.Integer(), nullable=False, server_default="30000"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_checked", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "usage_stats",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("api_key_id", sa.String(length=36), nullable=False),
        sa.Column("provider", sa.String(length=50), nullable=False),
        sa.Column("request_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("success_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_latency_ms", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("api_key_id", "provider", name="uq_usage_stats_key_provider"),
    )
    op.create_index("ix_usage_stats_api_key_id", "usage_stats", ["api_key_id"])

    op.create_table(
        "api_call_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("api_key_id", sa.String(length=36), nullable=False),
        sa.Column("provider", sa.String(length=50), nullable=False),
        sa.Column("endpoint", sa.String(length=255), nullable=False),
        sa.Column("method", sa.String(length=10), nullable=False),
        sa.Column("status_code", sa.Integer(), nullable=True),
        sa.Column("latency_ms", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_api_call_logs_api_key_id", "api_call_logs", ["api_key_id"])
    op.create_index("ix_api_call_logs_created_at", "api_call_logs", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_api_call_logs_created_at", table_name="api_call_logs")
    op.drop_index("ix_api_call_logs_api_key_id", table_name="api_call_logs")
    op.drop_table("api_call_logs")
    op.drop_index("ix_usage_stats_api_key_id", table_name="usage_stats")
    op.drop_table("usage_stats")
    op.drop_table("provider_configs")
    op.drop_index("ix_api_keys_key", table_name="api_keys")
    op.drop_table("api_keys")
