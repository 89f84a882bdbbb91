"""Income tax calculator — bracket resolution and Medicare levy."""

import logging
from decimal import Decimal
from typing import NamedTuple

from config.settings import settings as app_settings
from src.calculators.errors import BracketScheduleError, SettingsNotLoadedError
from src.calculators.money import HUNDRED, ZERO
from src.calculators.tax_data import TaxBracket, TaxSettings, validate_brackets

logger = logging.getLogger(__name__)

__all__ = [
    "TaxBreakdown",
    "calculate_effective_rate",
    "calculate_income_tax",
    "calculate_medicare_levy",
    "calculate_total_tax",
    "find_bracket",
    "validate_brackets",
]

MEDICARE_LEVY_RATE = Decimal("0.02")
MEDICARE_SHADE_IN_RATE = Decimal("0.10")
MEDICARE_PHASE_IN_FACTOR = Decimal("1.25")


class TaxBreakdown(NamedTuple):
    """Income tax plus Medicare levy for one taxable income figure."""

    income_tax: Decimal
    medicare_levy: Decimal
    total_tax: Decimal


def find_bracket(income: Decimal, brackets: list[TaxBracket]) -> TaxBracket | None:
    """Return the bracket with the largest ``min_income`` not above ``income``.

    Bracket bounds are whole dollars, so an income with cents between one
    bracket's ``max_income`` and the next ``min_income`` stays in the lower
    bracket. ``None`` if the income lies beyond a bounded top bracket.
    """
    for bracket in sorted(brackets, key=lambda b: b.min_income, reverse=True):
        if income < bracket.min_income:
            continue
        if bracket.max_income is None or income < bracket.max_income + 1:
            return bracket
        return None
    return None


def calculate_income_tax(
    taxable_income: Decimal,
    brackets: list[TaxBracket] | None,
    boundary_offset: bool | None = None,
) -> Decimal:
    """Resolve taxable income to tax payable.

    ``tax = base_tax + (income - min_income + 1) * rate / 100`` for the
    matching bracket. The ``+ 1`` reproduces the legacy schedule formula and is
    dropped when ``boundary_offset`` is False; ``None`` uses the configured
    default.

    Args:
        taxable_income: Taxable income; negatives are treated as 0.
        brackets: Bracket schedule for the period.
        boundary_offset: Whether to count the bracket threshold dollar.

    Raises:
        SettingsNotLoadedError: if no schedule was supplied.
        BracketScheduleError: if no bracket covers the income.
    """
    if not brackets:
        raise SettingsNotLoadedError("No tax bracket schedule loaded for this period.")
    if boundary_offset is None:
        boundary_offset = app_settings.bracket_boundary_offset

    if taxable_income <= 0:
        return ZERO

    bracket = find_bracket(taxable_income, brackets)
    if bracket is None:
        raise BracketScheduleError(f"No tax bracket covers taxable income {taxable_income}.")

    taxable_in_bracket = taxable_income - bracket.min_income
    if boundary_offset:
        taxable_in_bracket += 1
    tax = bracket.base_tax + taxable_in_bracket * bracket.rate / HUNDRED

    logger.debug(
        "Income %s in bracket from %s at %s%% -> tax %s",
        taxable_income, bracket.min_income, bracket.rate, tax,
    )
    return tax


def calculate_medicare_levy(
    taxable_income: Decimal,
    threshold: Decimal = Decimal("26000"),
) -> Decimal:
    """Calculate the Medicare levy.

    Nothing is payable up to the threshold. Between the threshold and 125% of
    it the levy shades in at 10% of the excess; above that it is 2% of the
    whole taxable income.
    """
    if taxable_income <= threshold:
        return ZERO

    if taxable_income < threshold * MEDICARE_PHASE_IN_FACTOR:
        return (taxable_income - threshold) * MEDICARE_SHADE_IN_RATE

    return taxable_income * MEDICARE_LEVY_RATE


def calculate_total_tax(
    taxable_income: Decimal,
    tax_settings: TaxSettings,
    boundary_offset: bool | None = None,
) -> TaxBreakdown:
    """Income tax plus Medicare levy under the period's settings."""
    income_tax = calculate_income_tax(taxable_income, tax_settings.tax_brackets, boundary_offset)
    medicare_levy = calculate_medicare_levy(taxable_income, tax_settings.medicare_levy_threshold)
    return TaxBreakdown(
        income_tax=income_tax,
        medicare_levy=medicare_levy,
        total_tax=income_tax + medicare_levy,
    )


def calculate_effective_rate(total_tax: Decimal, taxable_income: Decimal) -> Decimal:
    """Total tax as a percentage of taxable income (0 for zero income)."""
    if taxable_income <= 0:
        return ZERO
    return total_tax / taxable_income * HUNDRED
