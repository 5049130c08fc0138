# app/models/referral_link.py
from sqlmodel import SQLModel, Field
from sqlalchemy import CheckConstraint, DateTime, UniqueConstraint
from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime

from app.utils.referral_utils import utc_now
from app.utils.wallet_utils import normalize_wallet


class ReferralLink(SQLModel, table=True):
    __tablename__ = "referral_links"
    __table_args__ = (
        UniqueConstraint("referrer_wallet", "referral_wallet",
                         name="uq_referral_links_pair"),
        CheckConstraint("referrer_wallet <> referral_wallet",
                        name="ck_referral_links_no_self_referral"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    referrer_wallet: str = Field(max_length=42, index=True)  # quién invita
    # Una wallet solo puede tener un referidor durante toda su vida
    referral_wallet: str = Field(max_length=42, unique=True, index=True)
    created_at: datetime = Field(
        default_factory=utc_now, nullable=False,
        sa_type=DateTime(timezone=True))


class ReferralLinkRead(SQLModel):
    referral_wallet: str
    created_at: datetime


class ReferralCaptureRequest(SQLModel):
    referrer: str = Field(description="Wallet del referidor (0x...)")
    buyer: str = Field(description="Wallet del usuario referido (0x...)")

    @field_validator("referrer", "buyer")
    @classmethod
    def validate_wallet(cls, value: str) -> str:
        return normalize_wallet(value)


class ReferralLinkResponse(BaseModel):
    referral_link: str
    message: str


class OkResponse(BaseModel):
    ok: bool = True
