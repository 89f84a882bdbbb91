"""Money helpers for exact Decimal amounts and lenient parsing.

Every monetary value in the engine is a ``Decimal``. Record amounts arrive as
decimal strings, sometimes blank or half-typed; anything that cannot be read
as a finite decimal becomes zero.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")

# Currency symbol, thousands separators and whitespace
_FORMATTING_RE = re.compile(r"[$,\s]")


def parse_amount(value: Any) -> Decimal:
    """Coerce a raw record amount to ``Decimal``.

    ``None``, blank strings, unparsable text and non-finite values all
    become ``Decimal("0")``. Floats go through ``str()`` so the shortest
    decimal repr is used rather than the binary expansion.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        return Decimal(value)
    elif isinstance(value, float):
        amount = _to_decimal(str(value))
    elif isinstance(value, str):
        amount = _to_decimal(_FORMATTING_RE.sub("", value))
    else:
        return ZERO
    return amount if amount.is_finite() else ZERO


def _to_decimal(text: str) -> Decimal:
    if not text:
        return ZERO
    try:
        return Decimal(text)
    except InvalidOperation:
        return ZERO


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half-up. For display only; never feed back into sums."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percentage_of(amount: Decimal, percentage: Decimal | int) -> Decimal:
    """Return ``percentage`` percent of ``amount`` (e.g. 50 -> half)."""
    return amount * Decimal(percentage) / HUNDRED


def apply_ownership_percentage(amount: Decimal, ownership_percentage: Decimal | int) -> Decimal:
    """Scale a jointly-owned amount to the owner's share.

    A share outside (0, 100] is treated as no ownership and yields zero.
    """
    share = Decimal(str(ownership_percentage))
    if share <= 0 or share > HUNDRED:
        return ZERO
    return amount * share / HUNDRED


Amount = Annotated[Decimal, BeforeValidator(parse_amount)]
"""Pydantic field type for lenient record amounts."""

NonNegativeAmount = Annotated[Decimal, BeforeValidator(parse_amount), Field(ge=0)]
"""Lenient record amount that must not be negative (blank still reads as zero)."""
