from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime
from typing import Optional
from enum import Enum
from datetime import datetime

from app.utils.referral_utils import utc_now


class AdminRole(str, Enum):
    READ = "read"
    WRITE = "write"


class ReferralAdmin(SQLModel, table=True):
    __tablename__ = "referral_admins"
    wallet: str = Field(primary_key=True, max_length=42)
    # Solo los administradores 'write' pueden modificar esta tabla
    role: AdminRole = Field(default=AdminRole.READ)
    created_at: datetime = Field(
        default_factory=utc_now, nullable=False,
        sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(
        default_factory=utc_now,
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"onupdate": utc_now}
    )


class AdminCheckResponse(SQLModel):
    is_admin: bool = False
    role: Optional[AdminRole] = None


class AdminRoleUpdate(SQLModel):
    role: AdminRole = AdminRole.READ
