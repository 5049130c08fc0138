"""Create referral links, purchases and admins tables

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18 10:00:00
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "referral_links",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("referrer_wallet", sa.String(length=42), nullable=False),
        sa.Column("referral_wallet", sa.String(length=42), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("referrer_wallet", "referral_wallet", name="uq_referral_links_pair"),
        sa.CheckConstraint("referrer_wallet <> referral_wallet", name="ck_referral_links_no_self_referral"),
    )
    op.create_index("ix_referral_links_referrer_wallet", "referral_links", ["referrer_wallet"], unique=False)
    op.create_index("ix_referral_links_referral_wallet", "referral_links", ["referral_wallet"], unique=True)

    op.create_table(
        "referral_purchases",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tx_hash", sa.String(length=100), nullable=False),
        sa.Column("buyer_wallet", sa.String(length=42), nullable=False),
        sa.Column("referrer_wallet", sa.String(length=42), nullable=True),
        sa.Column("usdt_amount", sa.String(length=80), nullable=False),
        sa.Column("tokens_amount", sa.String(length=80), nullable=False),
        sa.Column("chain_id", sa.Integer(), nullable=False, server_default=sa.text("56")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "referrer_wallet IS NULL OR referrer_wallet <> buyer_wallet",
            name="ck_referral_purchases_no_self_referral",
        ),
    )
    op.create_index("ix_referral_purchases_tx_hash", "referral_purchases", ["tx_hash"], unique=True)
    op.create_index("ix_referral_purchases_buyer_wallet", "referral_purchases", ["buyer_wallet"], unique=False)
    op.create_index("ix_referral_purchases_referrer_wallet", "referral_purchases", ["referrer_wallet"], unique=False)

    op.create_table(
        "referral_admins",
        sa.Column("wallet", sa.String(length=42), primary_key=True),
        sa.Column("role", sa.Enum("READ", "WRITE", name="adminrole"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("referral_admins")

    op.drop_index("ix_referral_purchases_referrer_wallet", table_name="referral_purchases")
    op.drop_index("ix_referral_purchases_buyer_wallet", table_name="referral_purchases")
    op.drop_index("ix_referral_purchases_tx_hash", table_name="referral_purchases")
    op.drop_table("referral_purchases")

    op.drop_index("ix_referral_links_referral_wallet", table_name="referral_links")
    op.drop_index("ix_referral_links_referrer_wallet", table_name="referral_links")
    op.drop_table("referral_links")
