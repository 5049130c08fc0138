from sqlmodel import SQLModel, Field
from sqlalchemy import CheckConstraint, DateTime
from pydantic import field_validator
from typing import Optional, List
from datetime import datetime

from app.core.config import settings
from app.models.referral_link import ReferralLinkRead
from app.utils.referral_utils import canonical_amount, utc_now
from app.utils.wallet_utils import normalize_wallet, normalize_optional_wallet, normalize_tx_hash


class ReferralPurchase(SQLModel, table=True):
    __tablename__ = "referral_purchases"
    __table_args__ = (
        CheckConstraint(
            "referrer_wallet IS NULL OR referrer_wallet <> buyer_wallet",
            name="ck_referral_purchases_no_self_referral"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    # Hash de la transacción on-chain: clave de idempotencia
    tx_hash: str = Field(max_length=100, unique=True, index=True)
    buyer_wallet: str = Field(max_length=42, index=True)
    referrer_wallet: Optional[str] = Field(
        default=None, max_length=42, index=True)
    # Cantidades decimales guardadas como texto para no perder precisión
    usdt_amount: str = Field(max_length=80)
    tokens_amount: str = Field(max_length=80)
    chain_id: int = Field(default=56)
    created_at: datetime = Field(
        default_factory=utc_now, nullable=False,
        sa_type=DateTime(timezone=True))


class ReferralPurchaseCreate(SQLModel):
    buyer: str
    tx_hash: str
    usdt_amount: str
    tokens_amount: str
    chain_id: int = Field(default=settings.DEFAULT_CHAIN_ID, gt=0)
    referrer: Optional[str] = None

    @field_validator("buyer")
    @classmethod
    def validate_buyer(cls, value: str) -> str:
        return normalize_wallet(value)

    @field_validator("referrer")
    @classmethod
    def validate_referrer(cls, value: Optional[str]) -> Optional[str]:
        return normalize_optional_wallet(value)

    @field_validator("tx_hash")
    @classmethod
    def validate_tx_hash(cls, value: str) -> str:
        return normalize_tx_hash(value)

    @field_validator("usdt_amount", "tokens_amount", mode="before")
    @classmethod
    def validate_amount(cls, value) -> str:
        return canonical_amount(value)


class ReferralPurchaseRead(SQLModel):
    buyer_wallet: str
    usdt_amount: str
    tokens_amount: str
    tx_hash: str
    created_at: datetime


class ReferralTotals(SQLModel):
    total_usdt: str = "0"
    total_tokens: str = "0"


class UserReferralData(SQLModel):
    referrals: List[ReferralLinkRead] = Field(default_factory=list)
    purchases: List[ReferralPurchaseRead] = Field(default_factory=list)
    totals: ReferralTotals = Field(default_factory=ReferralTotals)


class ReferrerStats(SQLModel):
    referrer_wallet: str
    referrals_count: int = 0
    total_usdt: str = "0"
    total_tokens: str = "0"
    last_activity: Optional[datetime] = None
