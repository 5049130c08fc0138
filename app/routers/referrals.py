# app/routers/referrals.py

from fastapi import APIRouter, HTTPException, status, Request, Query
from typing import Optional
import logging

from ..core.db import SessionDep
from app.core.config import settings
from app.models.referral_link import ReferralCaptureRequest, ReferralLinkResponse, OkResponse
from app.models.referral_purchase import ReferralPurchaseCreate, UserReferralData
from app.models.referral_admin import AdminCheckResponse
from app.services.referral_service import ReferralService
from app.utils.referral_utils import StorageUnavailableException
from app.utils.wallet_utils import is_valid_wallet

router = APIRouter(prefix="/referral", tags=["referrals"])


@router.post("/capture", response_model=OkResponse, description="""
Registra que `buyer` llegó invitado por `referrer`.

La primera relación registrada para una wallet es la definitiva. Repetir la
llamada, o auto-referirse, no es un error y siempre responde `{"ok": true}`.
""")
def capture_referral(session: SessionDep, data: ReferralCaptureRequest):
    service = ReferralService(session)
    try:
        service.capture(data.referrer, data.buyer)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return OkResponse()


@router.post("/purchases", response_model=OkResponse, description="""
Registra una compra confirmada on-chain.

**Parámetros:**
- `buyer`: Wallet del comprador.
- `tx_hash`: Hash de la transacción (mínimo 10 caracteres). Enviar el mismo hash dos veces no duplica la compra.
- `usdt_amount`, `tokens_amount`: Cantidades decimales como texto.
- `chain_id`: Cadena de la compra (por defecto 56, BSC).
- `referrer`: Opcional. Si no se envía se usa el referidor guardado del enlace `/r/<wallet>` o el registrado para el comprador.
""")
def record_purchase(session: SessionDep, data: ReferralPurchaseCreate, request: Request):
    referrer = data.referrer
    if referrer is None:
        stored = request.cookies.get(settings.REFERRAL_COOKIE_NAME)
        if is_valid_wallet(stored):
            referrer = stored

    service = ReferralService(session)
    try:
        service.record_purchase(
            buyer=data.buyer,
            tx_hash=data.tx_hash,
            usdt_amount=data.usdt_amount,
            tokens_amount=data.tokens_amount,
            chain_id=data.chain_id,
            referrer=referrer
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return OkResponse()


@router.get("/users/{wallet}", response_model=UserReferralData)
def get_user_data(
    wallet: str,
    session: SessionDep,
    skip: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1, le=1000)
):
    """
    Devuelve los referidos y las compras atribuidas a la wallet, con los totales
    de todas sus compras (los totales no dependen de `skip`/`limit`).
    """
    service = ReferralService(session)
    try:
        return service.get_user_data(wallet, skip=skip, limit=limit)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageUnavailableException:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Base de datos no disponible"
        )
    except Exception:
        logging.exception("Unexpected error reading referral data")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/users/{wallet}/link", response_model=ReferralLinkResponse)
def get_referral_link(wallet: str, session: SessionDep):
    service = ReferralService(session)
    try:
        return service.get_referral_link(wallet)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/admins/{wallet}", response_model=AdminCheckResponse)
def check_admin(wallet: str, session: SessionDep):
    service = ReferralService(session)
    try:
        return service.check_admin(wallet)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
