import logging
from typing import List, Optional
from sqlmodel import Session, select
from sqlalchemy.exc import IntegrityError

from app.models.referral_link import ReferralLink
from app.utils.wallet_utils import normalize_wallet

logger = logging.getLogger(__name__)


class ReferralLinkService:
    """Relaciones referidor -> referido. Solo inserción, nunca se actualizan."""

    def __init__(self, session: Session):
        self.session = session

    def link(self, referrer: str, referral: str) -> bool:
        """
        Registra la relación si la wallet referida aún no tiene referidor.
        Devuelve True solo si se insertó una fila nueva; los duplicados y la
        auto-referencia no son errores.
        """
        referrer = normalize_wallet(referrer)
        referral = normalize_wallet(referral)
        if referrer == referral:
            return False

        link = ReferralLink(referrer_wallet=referrer, referral_wallet=referral)
        self.session.add(link)
        try:
            self.session.commit()
        except IntegrityError:
            # La restricción única decide: gana la primera escritura
            self.session.rollback()
            logger.debug("Referral link for %s already exists", referral)
            return False
        return True

    def find_referrer_of(self, referral: str) -> Optional[str]:
        referral = normalize_wallet(referral)
        return self.session.exec(
            select(ReferralLink.referrer_wallet)
            .where(ReferralLink.referral_wallet == referral)
            .limit(1)
        ).first()

    def list_referrals_of(
        self,
        referrer: str,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> List[ReferralLink]:
        referrer = normalize_wallet(referrer)
        query = (
            select(ReferralLink)
            .where(ReferralLink.referrer_wallet == referrer)
            .order_by(ReferralLink.created_at.desc(), ReferralLink.id.desc())
            .offset(skip)
        )
        if limit is not None:
            query = query.limit(limit)
        return list(self.session.exec(query).all())
