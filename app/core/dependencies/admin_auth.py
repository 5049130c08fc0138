from typing import Annotated
from fastapi import Depends, Header, HTTPException, status

from app.utils.wallet_utils import normalize_wallet


def get_caller_wallet(
    x_wallet_address: Annotated[str, Header(
        description="Wallet conectada del administrador (0x...)")]
) -> str:
    """
    Identifica al llamante por su wallet. Los permisos de administración no
    se evalúan aquí: cada operación de administración los verifica en
    ReferralAdminService.require_admin.
    """
    try:
        return normalize_wallet(x_wallet_address)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cabecera X-Wallet-Address inválida"
        )


CallerWallet = Annotated[str, Depends(get_caller_wallet)]
