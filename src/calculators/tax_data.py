"""Tax settings: bracket schedules and per-year rates.

Built-in defaults for the Australian resident schedule. The host application
may supply its own ``TaxSettings`` per financial year; a schedule is validated
as soon as the settings object is built.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.calculators.errors import BracketScheduleError
from src.calculators.money import Amount


class TaxBracket(BaseModel):
    """A single progressive tax bracket."""

    model_config = ConfigDict(frozen=True)

    min_income: int = Field(ge=0)  # inclusive
    max_income: int | None = None  # inclusive, None = no cap
    rate: Decimal = Field(ge=0, le=100)  # percent, e.g. 32.5
    base_tax: Decimal = Field(default=Decimal("0"), ge=0)  # tax on income below min_income


def validate_brackets(brackets: list[TaxBracket]) -> None:
    """Check that a schedule partitions the non-negative income line.

    Raises:
        BracketScheduleError: on the first violated invariant.
    """
    if not brackets:
        raise BracketScheduleError("Bracket schedule is empty.")

    if brackets[0].min_income != 0:
        raise BracketScheduleError(
            f"First bracket must start at 0, not {brackets[0].min_income}."
        )

    for index, bracket in enumerate(brackets):
        is_last = index == len(brackets) - 1
        if bracket.max_income is None:
            if not is_last:
                raise BracketScheduleError(
                    f"Unbounded bracket at position {index} must be the last bracket."
                )
            continue
        if is_last:
            raise BracketScheduleError("Last bracket must have no upper bound.")
        if bracket.max_income < bracket.min_income:
            raise BracketScheduleError(
                f"Bracket {bracket.min_income}-{bracket.max_income} ends before it starts."
            )
        following = brackets[index + 1]
        if following.min_income != bracket.max_income + 1:
            kind = "overlaps" if following.min_income <= bracket.max_income else "leaves a gap after"
            raise BracketScheduleError(
                f"Bracket starting at {following.min_income} {kind} "
                f"bracket {bracket.min_income}-{bracket.max_income}."
            )


class TaxSettings(BaseModel):
    """Rates and brackets for one financial year.

    ``tax_brackets`` of ``None`` (or empty) means the schedule has not been
    loaded yet, which calculators report as a configuration error.
    """

    financial_year: str
    tax_brackets: list[TaxBracket] | None = None
    wfh_fixed_rate: str | None = None  # $ per hour; blank -> DEFAULT_WFH_FIXED_RATE
    vehicle_cents_per_km: Amount = Decimal("0")
    meal_allowance: Amount = Decimal("0")
    low_value_pool_threshold: Amount = Decimal("0")
    instant_asset_write_off_threshold: Amount = Decimal("0")
    medicare_levy_threshold: Amount = Decimal("26000")

    @field_validator("tax_brackets")
    @classmethod
    def _check_schedule(cls, brackets: list[TaxBracket] | None) -> list[TaxBracket] | None:
        if brackets:
            validate_brackets(brackets)
        return brackets

    @property
    def has_brackets(self) -> bool:
        return bool(self.tax_brackets)


def financial_year_bounds(financial_year: str) -> tuple[date, date]:
    """Return (1 July, 30 June) for a label such as ``"2024-2025"``."""
    try:
        start_year = int(financial_year.split("-")[0])
    except ValueError:
        raise ValueError(f"Invalid financial year: {financial_year!r}") from None
    return date(start_year, 7, 1), date(start_year + 1, 6, 30)


DEFAULT_WFH_FIXED_RATE = Decimal("0.67")

# 2024-25 resident rates (Stage 3 changes)
_BRACKETS_2024_25 = [
    TaxBracket(min_income=0, max_income=18200, rate=Decimal("0"), base_tax=Decimal("0")),
    TaxBracket(min_income=18201, max_income=45000, rate=Decimal("16"), base_tax=Decimal("0")),
    TaxBracket(min_income=45001, max_income=135000, rate=Decimal("30"), base_tax=Decimal("4288")),
    TaxBracket(min_income=135001, max_income=190000, rate=Decimal("37"), base_tax=Decimal("31288")),
    TaxBracket(min_income=190001, max_income=None, rate=Decimal("45"), base_tax=Decimal("51638")),
]

TAX_YEARS: dict[str, TaxSettings] = {
    "2024-2025": TaxSettings(
        financial_year="2024-2025",
        tax_brackets=_BRACKETS_2024_25,
        wfh_fixed_rate="0.67",
        vehicle_cents_per_km=Decimal("0.88"),  # 88c per km
        meal_allowance=Decimal("36.40"),  # reasonable overtime meal allowance
        low_value_pool_threshold=Decimal("1000"),
        instant_asset_write_off_threshold=Decimal("20000"),
    ),
}


def get_tax_settings(financial_year: str) -> TaxSettings:
    """Return settings for a year, cloning the most recent year if unknown."""
    if financial_year in TAX_YEARS:
        return TAX_YEARS[financial_year]
    latest = TAX_YEARS[max(TAX_YEARS)]
    return latest.model_copy(update={"financial_year": financial_year})
