import re
from typing import Optional

# Dirección EVM: 0x + 40 dígitos hexadecimales
WALLET_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")

TX_HASH_MIN_LENGTH = 10
TX_HASH_MAX_LENGTH = 100


def is_valid_wallet(value: Optional[str]) -> bool:
    if not isinstance(value, str):
        return False
    return bool(WALLET_PATTERN.match(value.strip()))


def normalize_wallet(value: str) -> str:
    """
    Valida una dirección de wallet y la devuelve en minúsculas.
    Las direcciones se aceptan sin distinguir mayúsculas.
    """
    if not is_valid_wallet(value):
        raise ValueError(f"Invalid wallet address: {value!r}")
    return value.strip().lower()


def normalize_optional_wallet(value: Optional[str]) -> Optional[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return normalize_wallet(value)


def normalize_tx_hash(value: str) -> str:
    if not isinstance(value, str):
        raise ValueError("tx_hash must be a string")
    tx_hash = value.strip()
    if len(tx_hash) < TX_HASH_MIN_LENGTH:
        raise ValueError(
            f"tx_hash must have at least {TX_HASH_MIN_LENGTH} characters")
    if len(tx_hash) > TX_HASH_MAX_LENGTH:
        raise ValueError(
            f"tx_hash must have at most {TX_HASH_MAX_LENGTH} characters")
    return tx_hash
