from fastapi import APIRouter, status, HTTPException
from typing import List
import logging

from app.core.dependencies.admin_auth import CallerWallet
from app.core.db import SessionDep
from app.models.referral_admin import AdminRoleUpdate, AdminCheckResponse
from app.models.referral_link import OkResponse
from app.models.referral_purchase import ReferrerStats
from app.services.referral_service import ReferralService
from app.utils.referral_utils import (
    NotAuthorizedException,
    LastWriteAdminException,
    StorageUnavailableException
)

router = APIRouter(
    prefix="/referral/admin",
    tags=["ADMIN - Referrals"]
)


def _admin_error(e: Exception) -> HTTPException:
    if isinstance(e, NotAuthorizedException):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized")
    if isinstance(e, LastWriteAdminException):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, StorageUnavailableException):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Base de datos no disponible"
        )
    if isinstance(e, ValueError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logging.exception("Unexpected error in referral admin endpoint")
    return HTTPException(status_code=500, detail="Internal server error")


@router.get("/stats", response_model=List[ReferrerStats], description="""
Estadísticas agregadas por referidor: número de referidos, total USDT, total de tokens y última compra.

Requiere que la wallet de la cabecera `X-Wallet-Address` sea administrador. Un llamante
sin permisos recibe 403, nunca una lista vacía.
""")
def get_admin_stats(session: SessionDep, caller: CallerWallet):
    service = ReferralService(session)
    try:
        return service.admin_stats(caller)
    except Exception as e:
        raise _admin_error(e)


@router.put("/admins/{wallet}", response_model=AdminCheckResponse, description="""
Crea o actualiza un administrador (`read` o `write`). Solo para administradores `write`.
""")
def set_admin(wallet: str, data: AdminRoleUpdate, session: SessionDep, caller: CallerWallet):
    service = ReferralService(session)
    try:
        admin = service.set_admin(caller, wallet, data.role)
    except Exception as e:
        raise _admin_error(e)
    return AdminCheckResponse(is_admin=True, role=admin.role)


@router.delete("/admins/{wallet}", response_model=OkResponse, description="""
Revoca un administrador. Solo para administradores `write`; no se puede revocar al último `write`.
""")
def revoke_admin(wallet: str, session: SessionDep, caller: CallerWallet):
    service = ReferralService(session)
    try:
        service.revoke_admin(caller, wallet)
    except Exception as e:
        raise _admin_error(e)
    return OkResponse()
