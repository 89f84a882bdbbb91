"""Tax position calculator. Aggregates a period's records into tax payable."""

import logging
from collections.abc import Iterable
from decimal import Decimal

from pydantic import BaseModel

from src.calculators.capital_gains import Transaction, calculate_capital_gains
from src.calculators.errors import SettingsNotLoadedError
from src.calculators.income_tax import calculate_effective_rate, calculate_total_tax
from src.calculators.money import ZERO
from src.calculators.tax_data import TaxSettings
from src.records.models import DeductionItem, IncomeItem

logger = logging.getLogger(__name__)


class TaxPosition(BaseModel):
    """Estimated tax position for one period. Recomputed on demand, never stored."""

    financial_year: str
    total_income: Decimal
    capital_gain: Decimal
    total_deductions: Decimal
    deduction_count: int
    taxable_income: Decimal
    tax_payable: Decimal
    medicare_levy: Decimal
    total_tax: Decimal
    effective_rate: Decimal


def compute_position(
    tax_settings: TaxSettings | None,
    income_items: Iterable[IncomeItem],
    deduction_items: Iterable[DeductionItem],
    transactions: Iterable[Transaction] = (),
    boundary_offset: bool | None = None,
) -> TaxPosition:
    """Compute taxable income and tax payable for a period.

    Every deductible record counts toward ``deduction_count``, including
    zero-amount ones; capital improvements are not deductible and are left
    out entirely.

    Args:
        tax_settings: Settings for the period; must carry a bracket schedule.
        income_items: Income records for the period.
        deduction_items: Expense records for the period.
        transactions: Capital asset trades; the net taxable gain is income.
        boundary_offset: Passed through to the bracket formula.

    Raises:
        SettingsNotLoadedError: if settings or the bracket schedule are missing.
    """
    if tax_settings is None or not tax_settings.has_brackets:
        raise SettingsNotLoadedError("Tax settings are not loaded for this period.")

    total_income = sum((item.contribution(tax_settings) for item in income_items), ZERO)

    capital_gain = calculate_capital_gains(list(transactions)).net_capital_gain
    total_income += capital_gain

    total_deductions = ZERO
    deduction_count = 0
    for item in deduction_items:
        if not item.is_deductible:
            continue
        total_deductions += item.contribution(tax_settings)
        deduction_count += 1

    taxable_income = max(total_income - total_deductions, ZERO)
    breakdown = calculate_total_tax(taxable_income, tax_settings, boundary_offset)

    logger.debug(
        "Position %s: income=%s deductions=%s (%d) taxable=%s tax=%s",
        tax_settings.financial_year, total_income, total_deductions,
        deduction_count, taxable_income, breakdown.income_tax,
    )

    return TaxPosition(
        financial_year=tax_settings.financial_year,
        total_income=total_income,
        capital_gain=capital_gain,
        total_deductions=total_deductions,
        deduction_count=deduction_count,
        taxable_income=taxable_income,
        tax_payable=breakdown.income_tax,
        medicare_levy=breakdown.medicare_levy,
        total_tax=breakdown.total_tax,
        effective_rate=calculate_effective_rate(breakdown.total_tax, taxable_income),
    )
