import logging
from fastapi import APIRouter
from fastapi.responses import RedirectResponse

from app.core.config import settings
from app.utils.wallet_utils import normalize_wallet

logger = logging.getLogger(__name__)

router = APIRouter(tags=["referrals"])


@router.get("/r/{address}", include_in_schema=False)
def capture_short_link(address: str):
    """
    Enlace corto /r/<wallet>: guarda el referidor en una cookie y redirige a la
    página de compra. Una dirección inválida solo redirige, sin guardar nada.
    """
    response = RedirectResponse(
        url=settings.REFERRAL_REDIRECT_PATH, status_code=307)
    try:
        referrer = normalize_wallet(address)
    except ValueError:
        logger.info("Ignoring invalid referral link for %r", address)
        return response

    response.set_cookie(
        key=settings.REFERRAL_COOKIE_NAME,
        value=referrer,
        max_age=settings.REFERRAL_COOKIE_MAX_AGE,
        samesite="lax"
    )
    return response
