"""Pydantic models for the income and expense records supplied by the host app.

Each record kind is its own model, tagged by ``kind``, and knows what it
contributes to the period's income or deduction total. Amount fields are
lenient (blank or unparsable values count as zero) but never negative.
"""

import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from src.calculators.depreciation import DepreciationMethod, calculate_asset_deduction, effective_life
from src.calculators.errors import WfhValidationError
from src.calculators.money import ZERO, NonNegativeAmount, apply_ownership_percentage
from src.calculators.tax_data import TaxSettings
from src.calculators.wfh import ActualCostInputs, WfhMethod, WfhValidation, calculate_wfh_deduction

IncomeCategory = Literal[
    "salary",
    "dividends",
    "interest",
    "government_payment",
    "ato_summary",
    "other",
]


class ExpenseCategory(str, Enum):
    """Work-related expense categories for deduction records."""

    WORK_CLOTHING = "work_clothing"
    TOOLS_EQUIPMENT = "tools_equipment"
    SELF_EDUCATION = "self_education"
    HOME_OFFICE = "home_office"
    CAR_EXPENSES = "car_expenses"
    TRAVEL = "travel"
    PROFESSIONAL_SUBSCRIPTIONS = "professional_subscriptions"
    UNION_FEES = "union_fees"
    PHONE_INTERNET = "phone_internet"
    OTHER = "other"


# Categories that attract extra scrutiny and need good records
GREY_AREA_CATEGORIES: frozenset[ExpenseCategory] = frozenset({
    ExpenseCategory.WORK_CLOTHING,
    ExpenseCategory.SELF_EDUCATION,
    ExpenseCategory.HOME_OFFICE,
    ExpenseCategory.CAR_EXPENSES,
})


# --- Income records ---


class IncomeRecord(BaseModel):
    """General income: salary, dividends, interest and the like."""

    kind: Literal["income"] = "income"
    category: IncomeCategory = "other"
    amount: NonNegativeAmount = ZERO
    description: str = ""
    payer: str | None = None
    date: datetime.date | None = None

    def contribution(self, tax_settings: TaxSettings) -> Decimal:
        return self.amount


class PropertyIncomeRecord(BaseModel):
    """Rental property income for the year, before the owner's share."""

    kind: Literal["property_income"] = "property_income"
    property_id: int | None = None
    gross_rent: NonNegativeAmount = ZERO
    insurance_payouts: NonNegativeAmount = ZERO
    other_income: NonNegativeAmount = ZERO
    ownership_percentage: Decimal = Decimal("100")

    def contribution(self, tax_settings: TaxSettings) -> Decimal:
        total = self.gross_rent + self.insurance_payouts + self.other_income
        return apply_ownership_percentage(total, self.ownership_percentage)


IncomeItem = Annotated[
    IncomeRecord | PropertyIncomeRecord,
    Field(discriminator="kind"),
]


# --- Deduction records ---


class DeductionRecord(BaseModel):
    """Fields and flags shared by every deduction record."""

    category: ExpenseCategory = ExpenseCategory.OTHER

    @property
    def is_grey_area(self) -> bool:
        return self.category in GREY_AREA_CATEGORIES

    @property
    def is_deductible(self) -> bool:
        return True


class ReceiptRecord(DeductionRecord):
    """A work-related expense receipt."""

    kind: Literal["receipt"] = "receipt"
    amount: NonNegativeAmount = ZERO
    vendor: str = ""
    description: str = ""
    date: datetime.date | None = None

    def contribution(self, tax_settings: TaxSettings) -> Decimal:
        return self.amount


class PropertyExpenseRecord(DeductionRecord):
    """A rental property expense. Capital improvements are not deductible."""

    kind: Literal["property_expense"] = "property_expense"
    property_id: int | None = None
    expense_type: str = "other"  # e.g. interest, council_rates, repairs
    amount: NonNegativeAmount = ZERO
    description: str = ""
    is_capital_improvement: bool = False
    ownership_percentage: Decimal = Decimal("100")
    date: datetime.date | None = None

    @property
    def is_deductible(self) -> bool:
        return not self.is_capital_improvement

    def contribution(self, tax_settings: TaxSettings) -> Decimal:
        if self.is_capital_improvement:
            return ZERO
        return apply_ownership_percentage(self.amount, self.ownership_percentage)


class WorkFromHomeRecord(DeductionRecord):
    """The year's saved WFH claim."""

    kind: Literal["work_from_home"] = "work_from_home"
    category: ExpenseCategory = ExpenseCategory.HOME_OFFICE
    method: WfhMethod = "fixed_rate"
    total_hours: int = 0
    actual_costs: ActualCostInputs | None = None
    work_use_percentage: Decimal = Field(default=Decimal("100"), ge=0, le=100)

    def contribution(self, tax_settings: TaxSettings) -> Decimal:
        """WFH deduction for the period.

        Raises:
            WfhValidationError: if the recorded hours are rejected.
        """
        result = calculate_wfh_deduction(
            self.method,
            self.total_hours,
            self.actual_costs,
            self.work_use_percentage,
            tax_settings,
        )
        if isinstance(result, WfhValidation):
            raise WfhValidationError(result)
        return result.total_deduction


class DepreciableAssetRecord(DeductionRecord):
    """Equipment used for work, claimed as decline in value."""

    kind: Literal["depreciable_asset"] = "depreciable_asset"
    category: ExpenseCategory = ExpenseCategory.TOOLS_EQUIPMENT
    item_name: str = ""
    asset_type: str | None = None  # e.g. laptop, desk; sets the default effective life
    purchase_date: datetime.date
    cost: NonNegativeAmount = ZERO
    effective_life_years: Decimal | None = None
    method: DepreciationMethod = "diminishing_value"
    work_use_percentage: Decimal = Field(default=Decimal("100"), ge=0, le=100)
    prior_depreciation: NonNegativeAmount = ZERO  # claimed in earlier years
    instant_write_off: bool = False
    low_value_pool: bool = False

    @property
    def life_years(self) -> Decimal:
        if self.effective_life_years is not None:
            return self.effective_life_years
        return effective_life(self.asset_type)

    def contribution(self, tax_settings: TaxSettings) -> Decimal:
        result = calculate_asset_deduction(
            self.cost,
            self.life_years,
            self.purchase_date,
            self.method,
            self.work_use_percentage,
            tax_settings,
            prior_depreciation=self.prior_depreciation,
            instant_write_off=self.instant_write_off,
            low_value_pool=self.low_value_pool,
        )
        return result.work_use_deduction


DeductionItem = Annotated[
    ReceiptRecord | PropertyExpenseRecord | WorkFromHomeRecord | DepreciableAssetRecord,
    Field(discriminator="kind"),
]
