import logging
from sqlmodel import Session

from app.core.db import engine
from app.core.config import settings
from app.services.referral_admin_service import ReferralAdminService

logger = logging.getLogger(__name__)


def init_admins(session: Session, wallets: list[str]) -> int:
    """
    Registra como administradores 'write' las wallets configuradas en
    BOOTSTRAP_ADMIN_WALLETS. Las que ya existen no se modifican.
    """
    service = ReferralAdminService(session)
    created = 0
    for wallet in wallets:
        try:
            if service.bootstrap_admin(wallet):
                created += 1
        except ValueError:
            logger.warning("Ignoring invalid bootstrap admin wallet %r", wallet)
    return created


def init_data():
    with Session(engine) as session:
        created = init_admins(session, settings.BOOTSTRAP_ADMIN_WALLETS)
    if created:
        logger.info("Bootstrapped %d referral admin(s)", created)
