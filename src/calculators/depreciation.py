"""Depreciation (decline in value) of work-use assets for one financial year.

Covers the diminishing value and prime cost methods, carried-forward
written-down values, instant asset write-off and the low-value pool.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Literal, NamedTuple

from src.calculators.money import ZERO, percentage_of
from src.calculators.tax_data import TaxSettings, financial_year_bounds

logger = logging.getLogger(__name__)

DepreciationMethod = Literal["diminishing_value", "prime_cost"]
AssetDeductionMethod = Literal["diminishing_value", "prime_cost", "instant_write_off", "low_value_pool"]

DAYS_IN_YEAR = 365

# Pool rates: half rate in the year an asset is allocated, full rate after
LOW_VALUE_POOL_FIRST_YEAR_RATE = Decimal("0.1875")
LOW_VALUE_POOL_RATE = Decimal("0.375")

# Effective life in years for common work assets
COMMON_ASSET_EFFECTIVE_LIVES: dict[str, Decimal] = {
    "laptop": Decimal("4"),
    "desktop_computer": Decimal("4"),
    "mobile_phone": Decimal("3"),
    "tablet": Decimal("2"),
    "monitor": Decimal("5"),
    "printer": Decimal("5"),
    "office_furniture": Decimal("10"),
    "desk": Decimal("10"),
    "chair": Decimal("10"),
    "bookshelf": Decimal("15"),
    "tools_general": Decimal("5"),
    "camera": Decimal("5"),
    "software": Decimal("2.5"),
}
DEFAULT_EFFECTIVE_LIFE = Decimal("5")


class DepreciationResult(NamedTuple):
    """Per-year depreciation figures for a single asset."""

    method: AssetDeductionMethod
    days_held: int
    annual_rate: Decimal
    full_year_deduction: Decimal
    prorated_deduction: Decimal
    work_use_deduction: Decimal
    opening_written_down_value: Decimal
    closing_written_down_value: Decimal


def effective_life(asset_type: str | None) -> Decimal:
    """Effective life for a common asset type, 5 years if unknown."""
    if not asset_type:
        return DEFAULT_EFFECTIVE_LIFE
    return COMMON_ASSET_EFFECTIVE_LIVES.get(asset_type.strip().lower(), DEFAULT_EFFECTIVE_LIFE)


def can_instant_write_off(cost: Decimal, threshold: Decimal) -> bool:
    """True if the cost is within a positive write-off threshold."""
    return threshold > 0 and cost <= threshold


def should_use_low_value_pool(written_down_value: Decimal, threshold: Decimal) -> bool:
    """True if the value is below a positive low-value pool threshold."""
    return threshold > 0 and written_down_value < threshold


def days_held_in_year(purchase_date: date, financial_year: str) -> int:
    """Inclusive days the asset was held within the financial year."""
    year_start, year_end = financial_year_bounds(financial_year)
    start = max(purchase_date, year_start)
    if start > year_end:
        return 0
    return (year_end - start).days + 1


def calculate_depreciation(
    cost: Decimal,
    effective_life_years: Decimal | int,
    purchase_date: date,
    method: DepreciationMethod,
    work_use_percentage: Decimal | int,
    financial_year: str,
    prior_depreciation: Decimal = ZERO,
) -> DepreciationResult:
    """Decline in value for the year, apportioned for days held and work use.

    Prime cost uses ``cost / life``; diminishing value uses
    ``opening value x 2 / life``, where the opening written-down value is cost
    less ``prior_depreciation``. The year's deduction never exceeds the
    opening value.
    """
    days_held = days_held_in_year(purchase_date, financial_year)
    opening = max(cost - prior_depreciation, ZERO)
    life = Decimal(str(effective_life_years))

    if life <= 0 or days_held == 0 or opening == 0:
        return DepreciationResult(method, days_held, ZERO, ZERO, ZERO, ZERO, opening, opening)

    if method == "diminishing_value":
        annual_rate = Decimal(2) / life
        full_year = opening * annual_rate
    else:
        annual_rate = Decimal(1) / life
        full_year = cost * annual_rate
    # Leap years still count as one full year
    prorated = min(full_year * min(days_held, DAYS_IN_YEAR) / DAYS_IN_YEAR, opening)

    return DepreciationResult(
        method=method,
        days_held=days_held,
        annual_rate=annual_rate,
        full_year_deduction=full_year,
        prorated_deduction=prorated,
        work_use_deduction=percentage_of(prorated, work_use_percentage),
        opening_written_down_value=opening,
        closing_written_down_value=opening - prorated,
    )


def calculate_asset_deduction(
    cost: Decimal,
    effective_life_years: Decimal | int,
    purchase_date: date,
    method: DepreciationMethod,
    work_use_percentage: Decimal | int,
    tax_settings: TaxSettings,
    prior_depreciation: Decimal = ZERO,
    instant_write_off: bool = False,
    low_value_pool: bool = False,
) -> DepreciationResult:
    """Deduction for one asset under the period's thresholds.

    An instant write-off claims the whole cost in the year of purchase when the
    cost is within ``instant_asset_write_off_threshold``. A pooled asset whose
    opening value is below ``low_value_pool_threshold`` is deducted at the pool
    rate without apportioning for days held. Ineligible requests fall back to
    ordinary depreciation.
    """
    financial_year = tax_settings.financial_year
    year_start, _ = financial_year_bounds(financial_year)
    days_held = days_held_in_year(purchase_date, financial_year)
    opening = max(cost - prior_depreciation, ZERO)

    if instant_write_off:
        bought_this_year = purchase_date >= year_start and days_held > 0
        if bought_this_year and prior_depreciation == 0 and can_instant_write_off(
            cost, tax_settings.instant_asset_write_off_threshold
        ):
            return DepreciationResult(
                method="instant_write_off",
                days_held=days_held,
                annual_rate=Decimal(1),
                full_year_deduction=cost,
                prorated_deduction=cost,
                work_use_deduction=percentage_of(cost, work_use_percentage),
                opening_written_down_value=cost,
                closing_written_down_value=ZERO,
            )
        logger.info("Asset costing %s not eligible for instant write-off in %s", cost, financial_year)

    if low_value_pool:
        if days_held > 0 and should_use_low_value_pool(opening, tax_settings.low_value_pool_threshold):
            rate = LOW_VALUE_POOL_FIRST_YEAR_RATE if purchase_date >= year_start else LOW_VALUE_POOL_RATE
            deduction = opening * rate
            return DepreciationResult(
                method="low_value_pool",
                days_held=days_held,
                annual_rate=rate,
                full_year_deduction=deduction,
                prorated_deduction=deduction,
                work_use_deduction=percentage_of(deduction, work_use_percentage),
                opening_written_down_value=opening,
                closing_written_down_value=opening - deduction,
            )
        logger.info("Asset value %s not eligible for the low-value pool in %s", opening, financial_year)

    return calculate_depreciation(
        cost, effective_life_years, purchase_date, method, work_use_percentage,
        financial_year, prior_depreciation,
    )
