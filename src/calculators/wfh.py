"""Work-from-home deduction calculator (fixed rate and actual cost methods)."""

import logging
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel

from src.calculators.money import HUNDRED, ZERO, NonNegativeAmount, parse_amount, round_money
from src.calculators.tax_data import DEFAULT_WFH_FIXED_RATE, TaxSettings

logger = logging.getLogger(__name__)

WfhMethod = Literal["fixed_rate", "actual_cost"]

FULL_TIME_HOURS = 2080  # 52 weeks x 40 hours
MAX_REASONABLE_HOURS = 3120  # 52 weeks x 5 days x 12 hours

RECOMMENDED_MAX_HOURS: dict[str, int] = {
    "full_time_office": 1600,  # ~8 hrs/day, 200 days
    "full_time_mixed": 800,  # ~4 hrs/day at home
    "part_time": 600,
    "contractor": 1800,
    "default": 1200,
}


class ActualCostInputs(BaseModel):
    """Annual running costs before work-use apportionment."""

    electricity: NonNegativeAmount = ZERO
    internet: NonNegativeAmount = ZERO
    cleaning: NonNegativeAmount = ZERO
    phone_usage: NonNegativeAmount = ZERO
    stationery: NonNegativeAmount = ZERO
    furniture_depreciation: NonNegativeAmount = ZERO


class BreakdownLine(BaseModel):
    label: str
    amount: Decimal


class WfhResult(BaseModel):
    """Outcome of a WFH deduction calculation."""

    method: WfhMethod
    total_hours: int
    rate_per_hour: Decimal
    total_deduction: Decimal
    breakdown: list[BreakdownLine] = []
    warning: str | None = None


class WfhValidation(BaseModel):
    """Result of checking claimed WFH hours."""

    valid: bool
    message: str | None = None


# Presentation order for the actual cost breakdown
_ACTUAL_COST_LINES: tuple[tuple[str, str], ...] = (
    ("electricity", "Electricity (heating/cooling/lighting)"),
    ("internet", "Internet"),
    ("phone_usage", "Phone usage"),
    ("cleaning", "Cleaning (home office area)"),
    ("stationery", "Stationery & consumables"),
    ("furniture_depreciation", "Furniture depreciation"),
)


def validate_wfh_hours(hours: int) -> WfhValidation:
    """Check claimed hours against hard and advisory limits."""
    if hours < 0:
        return WfhValidation(valid=False, message="Hours cannot be negative")

    if hours > MAX_REASONABLE_HOURS:
        return WfhValidation(
            valid=False,
            message="Hours exceed reasonable limit (3,120 hours = 12 hours/day for 52 weeks)",
        )

    if hours > FULL_TIME_HOURS:
        return WfhValidation(
            valid=True,
            message="Warning: Hours exceed typical full-time work year (2,080 hours)",
        )

    return WfhValidation(valid=True)


def _fixed_rate(tax_settings: TaxSettings) -> Decimal:
    raw = tax_settings.wfh_fixed_rate
    if raw is None or not raw.strip():
        return DEFAULT_WFH_FIXED_RATE
    return parse_amount(raw)


def calculate_wfh_fixed_rate(total_hours: int, tax_settings: TaxSettings) -> WfhResult:
    """Fixed rate method: hours worked from home x the period's hourly rate.

    The rate covers energy, phone, internet and stationery; equipment
    depreciation is claimed separately.
    """
    rate_per_hour = _fixed_rate(tax_settings)
    total_deduction = rate_per_hour * total_hours

    return WfhResult(
        method="fixed_rate",
        total_hours=total_hours,
        rate_per_hour=rate_per_hour,
        total_deduction=total_deduction,
        breakdown=[
            BreakdownLine(
                label=f"{total_hours} hours × ${round_money(rate_per_hour)}/hr",
                amount=total_deduction,
            )
        ],
    )


def calculate_wfh_actual_cost(
    actual_costs: ActualCostInputs,
    work_use_percentage: Decimal | int = 100,
) -> WfhResult:
    """Actual cost method: each running cost x work-use percentage.

    Zero lines are left out of the breakdown, and the breakdown always sums
    exactly to the total.
    """
    work_use = Decimal(str(work_use_percentage))
    if not 0 <= work_use <= 100:
        raise ValueError(f"Work use percentage must be between 0 and 100, got {work_use_percentage}")
    fraction = work_use / HUNDRED

    lines = [
        BreakdownLine(label=label, amount=getattr(actual_costs, field) * fraction)
        for field, label in _ACTUAL_COST_LINES
    ]
    total_deduction = sum((line.amount for line in lines), ZERO)

    return WfhResult(
        method="actual_cost",
        total_hours=0,
        rate_per_hour=ZERO,
        total_deduction=total_deduction,
        breakdown=[line for line in lines if not line.amount.is_zero()],
    )


def calculate_wfh_deduction(
    method: WfhMethod,
    total_hours: int,
    actual_costs: ActualCostInputs | None,
    work_use_percentage: Decimal | int,
    tax_settings: TaxSettings,
) -> WfhResult | WfhValidation:
    """Calculate the WFH deduction for the selected method.

    Fixed rate hours are validated first; an invalid figure is returned as
    the ``WfhValidation`` and nothing is computed, while an advisory message
    is carried on ``WfhResult.warning``. Actual cost with no costs recorded
    yields a zero result.
    """
    if method == "fixed_rate":
        validation = validate_wfh_hours(total_hours)
        if not validation.valid:
            return validation
        result = calculate_wfh_fixed_rate(total_hours, tax_settings)
        result.warning = validation.message
        return result

    if actual_costs is not None:
        return calculate_wfh_actual_cost(actual_costs, work_use_percentage)

    logger.debug("Actual cost method selected with no costs recorded")
    return WfhResult(
        method="actual_cost",
        total_hours=0,
        rate_per_hour=ZERO,
        total_deduction=ZERO,
        breakdown=[],
    )


def recommended_max_hours(occupation_type: str) -> int:
    """Conservative annual WFH hours for an occupation type."""
    return RECOMMENDED_MAX_HOURS.get(occupation_type, RECOMMENDED_MAX_HOURS["default"])
