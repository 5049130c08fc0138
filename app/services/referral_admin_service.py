import logging
from typing import Optional
from sqlmodel import Session, select
from sqlalchemy import func

from app.models.referral_admin import ReferralAdmin, AdminRole, AdminCheckResponse
from app.utils.referral_utils import NotAuthorizedException, LastWriteAdminException, utc_now
from app.utils.wallet_utils import normalize_wallet

logger = logging.getLogger(__name__)


class ReferralAdminService:
    def __init__(self, session: Session):
        self.session = session

    def get_admin(self, wallet: str) -> Optional[ReferralAdmin]:
        return self.session.get(ReferralAdmin, normalize_wallet(wallet))

    def is_admin(self, wallet: str) -> AdminCheckResponse:
        admin = self.get_admin(wallet)
        if not admin:
            return AdminCheckResponse(is_admin=False)
        return AdminCheckResponse(is_admin=True, role=admin.role)

    def require_admin(
        self,
        caller: str,
        required_role: AdminRole = AdminRole.READ
    ) -> ReferralAdmin:
        """
        Único punto de autorización para las operaciones de administración.
        Se consulta la base de datos en cada llamada.
        """
        caller = normalize_wallet(caller)
        admin = self.session.get(ReferralAdmin, caller)
        if not admin:
            logger.warning("Rejected admin access for %s", caller)
            raise NotAuthorizedException("Not authorized")
        if required_role == AdminRole.WRITE and admin.role != AdminRole.WRITE:
            logger.warning("Rejected write admin access for %s", caller)
            raise NotAuthorizedException("Write admin role required")
        return admin

    def _count_write_admins(self) -> int:
        return self.session.exec(
            select(func.count()).select_from(ReferralAdmin).where(
                ReferralAdmin.role == AdminRole.WRITE)
        ).one()

    def set_admin(self, caller: str, wallet: str, role: AdminRole) -> ReferralAdmin:
        self.require_admin(caller, AdminRole.WRITE)
        wallet = normalize_wallet(wallet)
        role = AdminRole(role)

        admin = self.session.get(ReferralAdmin, wallet)
        if admin:
            if (admin.role == AdminRole.WRITE and role != AdminRole.WRITE
                    and self._count_write_admins() <= 1):
                raise LastWriteAdminException(
                    "Cannot demote the last write admin")
            admin.role = role
            admin.updated_at = utc_now()
        else:
            admin = ReferralAdmin(wallet=wallet, role=role)
        self.session.add(admin)
        self.session.commit()
        self.session.refresh(admin)
        logger.info("Admin %s set to role %s by %s",
                    wallet, role.value, normalize_wallet(caller))
        return admin

    def revoke_admin(self, caller: str, wallet: str) -> bool:
        self.require_admin(caller, AdminRole.WRITE)
        wallet = normalize_wallet(wallet)

        admin = self.session.get(ReferralAdmin, wallet)
        if not admin:
            return False
        if admin.role == AdminRole.WRITE and self._count_write_admins() <= 1:
            raise LastWriteAdminException("Cannot revoke the last write admin")
        self.session.delete(admin)
        self.session.commit()
        logger.info("Admin %s revoked by %s", wallet, normalize_wallet(caller))
        return True

    def bootstrap_admin(self, wallet: str) -> bool:
        """Alta inicial sin verificación de rol (solo desde init_data)."""
        wallet = normalize_wallet(wallet)
        if self.session.get(ReferralAdmin, wallet):
            return False
        self.session.add(ReferralAdmin(wallet=wallet, role=AdminRole.WRITE))
        self.session.commit()
        return True
