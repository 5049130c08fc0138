from datetime import datetime, timezone
from decimal import (
    Context, Decimal, DecimalException, DivisionByZero, Inexact,
    InvalidOperation, Overflow, localcontext
)
from typing import Iterable, Union
from sqlalchemy.exc import InterfaceError, OperationalError

# Errores del driver que indican que la base de datos no está disponible
STORAGE_ERRORS = (OperationalError, InterfaceError)

# Longitud máxima de una cantidad guardada (columna VARCHAR(80))
MAX_AMOUNT_LENGTH = 80

# Precisión suficiente para sumar cantidades de 80 caracteres sin redondeo.
# Si una operación tuviera que redondear se lanza Inexact.
AMOUNT_CONTEXT = Context(
    prec=MAX_AMOUNT_LENGTH * 4,
    traps=[InvalidOperation, DivisionByZero, Overflow, Inexact]
)


class NotAuthorizedException(Exception):
    pass


class LastWriteAdminException(Exception):
    pass


class StorageUnavailableException(Exception):
    pass


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_amount(value: Union[str, int, Decimal]) -> Decimal:
    """
    Convierte una cantidad decimal (USDT o tokens) a Decimal.
    Solo se aceptan valores finitos, no negativos y cuyo exponente
    quepa en la columna de texto.
    """
    if isinstance(value, bool) or not isinstance(value, (str, int, Decimal)):
        raise ValueError("Amount must be a decimal string")
    text = str(value).strip()
    if not text or len(text) > MAX_AMOUNT_LENGTH:
        raise ValueError(f"Invalid amount: {value!r}")
    try:
        amount = Decimal(text)
    except DecimalException as e:
        raise ValueError(f"Invalid amount: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    if amount < 0:
        raise ValueError("Amount cannot be negative")
    # 1e+1000000 tiene pocos caracteres pero no cabe en texto plano
    if amount and abs(amount.adjusted()) > MAX_AMOUNT_LENGTH:
        raise ValueError(f"Amount out of range: {value!r}")
    return amount


def format_amount(amount: Decimal) -> str:
    # Sin notación científica ni ceros a la derecha: 100.50 -> "100.5"
    if amount == 0:
        return "0"
    with localcontext(AMOUNT_CONTEXT):
        return format(amount.normalize(), "f")


def canonical_amount(value: Union[str, int, Decimal]) -> str:
    try:
        text = format_amount(parse_amount(value))
    except DecimalException as e:
        raise ValueError(f"Invalid amount: {value!r}") from e
    if len(text) > MAX_AMOUNT_LENGTH:
        raise ValueError(f"Amount has too many digits: {value!r}")
    return text


def sum_amounts(values: Iterable[str]) -> Decimal:
    total = Decimal("0")
    with localcontext(AMOUNT_CONTEXT):
        for value in values:
            total += Decimal(value)
    return total
