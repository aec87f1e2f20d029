"""Initial schema: members, contributions, benefit claims and webhooks.

Revision ID: 0001
Revises:
Create Date: 2026-06-01 09:00:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def _money(name: str, *, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.Numeric(15, 2), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "members",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("member_number", sa.String(50), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column("enrollment_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_members"),
        sa.UniqueConstraint("member_number", name="uq_members_member_number"),
    )

    op.create_table(
        "contributions",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("member_id", sa.BigInteger(), nullable=False),
        sa.Column("contribution_type", sa.String(20), nullable=False),
        _money("amount"),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("contribution_date", sa.Date(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_contributions"),
        sa.ForeignKeyConstraint(
            ["member_id"],
            ["members.id"],
            name="fk_contributions_member_id_members",
        ),
    )
    op.create_index(
        "ix_contributions_member_id", "contributions", ["member_id"], unique=False
    )

    op.create_table(
        "benefit_claims",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("reference_number", sa.String(50), nullable=False),
        sa.Column("member_id", sa.BigInteger(), nullable=False),
        sa.Column("benefit_type", sa.String(30), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        _money("total_contributions"),
        _money("employer_contributions"),
        _money("investment_returns"),
        _money("gross_benefit"),
        _money("tax_amount"),
        _money("admin_fee_amount"),
        _money("net_payable"),
        _money("approved_amount", nullable=True),
        sa.Column("application_date", sa.Date(), nullable=False),
        sa.Column("review_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approval_date", sa.Date(), nullable=True),
        sa.Column("approved_by", sa.String(100), nullable=True),
        sa.Column("rejected_by", sa.String(100), nullable=True),
        sa.Column("rejection_reason", sa.String(500), nullable=True),
        sa.Column("disbursement_date", sa.Date(), nullable=True),
        sa.Column("disbursed_by", sa.String(100), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_method", sa.String(100), nullable=True),
        sa.Column("account_number", sa.String(100), nullable=True),
        sa.Column("bank_name", sa.String(100), nullable=True),
        sa.Column("remarks", sa.String(500), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_benefit_claims"),
        sa.ForeignKeyConstraint(
            ["member_id"],
            ["members.id"],
            name="fk_benefit_claims_member_id_members",
        ),
        sa.UniqueConstraint(
            "reference_number", name="uq_benefit_claims_reference_number"
        ),
        sa.CheckConstraint(
            "net_payable >= 0",
            name="ck_benefit_claims_net_payable_non_negative",
        ),
    )
    op.create_index(
        "ix_benefit_claims_member_id", "benefit_claims", ["member_id"], unique=False
    )
    op.create_index(
        "ix_benefit_claims_status", "benefit_claims", ["status"], unique=False
    )
    op.create_index(
        "uq_benefit_claims_active_member",
        "benefit_claims",
        ["member_id"],
        unique=True,
        postgresql_where=sa.text(
            "status IN ('APPROVED', 'PENDING', 'UNDER_REVIEW')"
        ),
    )

    op.create_table(
        "webhooks",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("secret", sa.String(128), nullable=False),
        sa.Column("events", postgresql.ARRAY(sa.String(50)), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("created_by", sa.String(100), nullable=True),
        sa.Column("retry_count", sa.Integer(), nullable=False),
        sa.Column("timeout_seconds", sa.Integer(), nullable=False),
        sa.Column("failure_count", sa.Integer(), nullable=False),
        sa.Column("last_triggered_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_webhooks"),
    )
    op.create_index("ix_webhooks_active", "webhooks", ["active"], unique=False)

    op.create_table(
        "webhook_deliveries",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("webhook_id", sa.BigInteger(), nullable=False),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("payload", sa.Text(), nullable=False),
        sa.Column("response_status", sa.Integer(), nullable=True),
        sa.Column("response_body", sa.Text(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("attempt_count", sa.Integer(), nullable=False),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("next_retry_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_webhook_deliveries"),
        sa.ForeignKeyConstraint(
            ["webhook_id"],
            ["webhooks.id"],
            name="fk_webhook_deliveries_webhook_id_webhooks",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_webhook_deliveries_webhook_id",
        "webhook_deliveries",
        ["webhook_id"],
        unique=False,
    )
    op.create_index(
        "ix_webhook_deliveries_event_type",
        "webhook_deliveries",
        ["event_type"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_table("webhook_deliveries")
    op.drop_table("webhooks")
    op.drop_table("benefit_claims")
    op.drop_table("contributions")
    op.drop_table("members")
