"""promo codes, alert thresholds and alert logs

Revision ID: 0001_promo_alerts
Revises:
Create Date: 2026-10-16

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001_promo_alerts"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "promo_codes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column(
            "discount_type",
            sa.Enum("flat", "percentage", name="discount_type"),
            nullable=False,
            server_default="percentage",
        ),
        sa.Column(
            "discount_value", sa.Numeric(10, 2), nullable=False, server_default="0"
        ),
        sa.Column("usage_limit", sa.Integer(), nullable=True),
        sa.Column("used_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("min_order_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_promo_codes_code", "promo_codes", ["code"], unique=True)

    op.create_table(
        "promo_alert_thresholds",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "redemption_cap_pct", sa.Integer(), nullable=False, server_default="80"
        ),
        sa.Column(
            "expiry_days_before", sa.Integer(), nullable=False, server_default="3"
        ),
        sa.Column("roi_target_pct", sa.Integer(), nullable=False, server_default="200"),
        sa.Column(
            "alert_emails",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "promo_alert_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("promo_code_id", sa.Integer(), nullable=False),
        sa.Column("promo_code", sa.String(length=64), nullable=False),
        sa.Column(
            "alert_type",
            sa.Enum(
                "redemption_cap",
                "expired",
                "expiring_soon",
                "roi_target",
                name="promo_alert_type",
            ),
            nullable=False,
        ),
        sa.Column(
            "details",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "sent_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(["promo_code_id"], ["promo_codes.id"]),
    )
    op.create_index(
        "ix_promo_alert_logs_lookup",
        "promo_alert_logs",
        ["promo_code_id", "alert_type", "sent_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_promo_alert_logs_lookup", table_name="promo_alert_logs")
    op.drop_table("promo_alert_logs")
    op.drop_table("promo_alert_thresholds")
    op.drop_index("ix_promo_codes_code", table_name="promo_codes")
    op.drop_table("promo_codes")
    sa.Enum(name="promo_alert_type").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="discount_type").drop(op.get_bind(), checkfirst=True)
