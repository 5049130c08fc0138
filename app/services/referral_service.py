# app/services/referral_service.py
import logging
from typing import List, Optional
from sqlmodel import Session

from app.core.config import settings
from app.models.referral_admin import ReferralAdmin, AdminRole, AdminCheckResponse
from app.models.referral_link import ReferralLinkRead, ReferralLinkResponse
from app.models.referral_purchase import ReferralPurchaseRead, UserReferralData, ReferrerStats
from app.services.referral_admin_service import ReferralAdminService
from app.services.referral_link_service import ReferralLinkService
from app.services.referral_purchase_service import ReferralPurchaseService
from app.utils.referral_utils import STORAGE_ERRORS, StorageUnavailableException, canonical_amount
from app.utils.wallet_utils import normalize_wallet, normalize_optional_wallet, normalize_tx_hash

logger = logging.getLogger(__name__)


class ReferralService:
    """
    Orquesta el programa de referidos: captura de enlaces, registro de
    compras, panel del usuario y estadísticas de administración.

    La identidad del llamante siempre llega como parámetro (wallet), nunca
    desde estado compartido.
    """

    def __init__(self, session: Session):
        self.session = session
        self.links = ReferralLinkService(session)
        self.purchases = ReferralPurchaseService(session)
        self.admins = ReferralAdminService(session)

    def _storage_failed(self, action: str, error: Exception):
        self.session.rollback()
        logger.warning("Storage unavailable during %s: %s", action, error)

    def capture(self, referrer: str, buyer: str) -> bool:
        """
        Registra referidor -> comprador. Nunca bloquea el flujo del usuario:
        si la base de datos no responde se registra en el log y se devuelve
        éxito igualmente.
        """
        referrer = normalize_wallet(referrer)
        buyer = normalize_wallet(buyer)
        if referrer == buyer:
            return True
        try:
            self.links.link(referrer, buyer)
        except STORAGE_ERRORS as e:
            self._storage_failed("referral capture", e)
        return True

    def record_purchase(
        self,
        buyer: str,
        tx_hash: str,
        usdt_amount: str,
        tokens_amount: str,
        chain_id: Optional[int] = None,
        referrer: Optional[str] = None
    ) -> bool:
        buyer = normalize_wallet(buyer)
        referrer = normalize_optional_wallet(referrer)
        if chain_id is None:
            chain_id = settings.DEFAULT_CHAIN_ID
        # Validar todo antes de tocar la base de datos
        tx_hash = normalize_tx_hash(tx_hash)
        usdt_amount = canonical_amount(usdt_amount)
        tokens_amount = canonical_amount(tokens_amount)
        if isinstance(chain_id, bool) or not isinstance(chain_id, int) or chain_id <= 0:
            raise ValueError(f"Invalid chain_id: {chain_id!r}")
        if referrer == buyer:
            referrer = None

        try:
            if referrer is None:
                referrer = self.links.find_referrer_of(buyer)
            else:
                # Primera atribución: deja registrada la relación
                self.links.link(referrer, buyer)
            self.purchases.record(
                buyer=buyer,
                tx_hash=tx_hash,
                usdt_amount=usdt_amount,
                tokens_amount=tokens_amount,
                chain_id=chain_id,
                referrer=referrer
            )
        except STORAGE_ERRORS as e:
            self._storage_failed("purchase recording", e)
        return True

    def get_user_data(
        self,
        wallet: str,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> UserReferralData:
        wallet = normalize_wallet(wallet)
        try:
            referrals = self.links.list_referrals_of(wallet, skip=skip, limit=limit)
            purchases = self.purchases.list_by_referrer(wallet, skip=skip, limit=limit)
            totals = self.purchases.totals_for_referrer(wallet)
        except STORAGE_ERRORS as e:
            self._storage_failed("user data read", e)
            raise StorageUnavailableException("Referral storage unavailable") from e

        return UserReferralData(
            referrals=[ReferralLinkRead.model_validate(r, from_attributes=True)
                       for r in referrals],
            purchases=[ReferralPurchaseRead.model_validate(p, from_attributes=True)
                       for p in purchases],
            totals=totals
        )

    def get_referral_link(self, wallet: str) -> ReferralLinkResponse:
        wallet = normalize_wallet(wallet)
        base_url = settings.PUBLIC_BASE_URL.rstrip("/")
        return ReferralLinkResponse(
            referral_link=f"{base_url}/r/{wallet}",
            message="Comparte este enlace para invitar nuevos compradores"
        )

    def check_admin(self, wallet: str) -> AdminCheckResponse:
        wallet = normalize_wallet(wallet)
        try:
            return self.admins.is_admin(wallet)
        except STORAGE_ERRORS as e:
            self._storage_failed("admin check", e)
            return AdminCheckResponse(is_admin=False)

    def admin_stats(self, caller: str) -> List[ReferrerStats]:
        """Estadísticas agregadas por referidor. Solo lectura."""
        try:
            self.admins.require_admin(caller, AdminRole.READ)
            return self.purchases.aggregate_by_referrer()
        except STORAGE_ERRORS as e:
            self._storage_failed("admin stats", e)
            raise StorageUnavailableException("Referral storage unavailable") from e

    def set_admin(self, caller: str, wallet: str, role: AdminRole) -> ReferralAdmin:
        try:
            return self.admins.set_admin(caller, wallet, role)
        except STORAGE_ERRORS as e:
            self._storage_failed("admin update", e)
            raise StorageUnavailableException("Referral storage unavailable") from e

    def revoke_admin(self, caller: str, wallet: str) -> bool:
        try:
            return self.admins.revoke_admin(caller, wallet)
        except STORAGE_ERRORS as e:
            self._storage_failed("admin revoke", e)
            raise StorageUnavailableException("Referral storage unavailable") from e
