"""API routes for the tax position and deduction-risk engine."""

import logging
from decimal import Decimal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from config.settings import settings
from src.calculators.capital_gains import Transaction
from src.calculators.errors import (
    BenchmarkTableError,
    ConfigurationError,
    SettingsNotLoadedError,
    WfhValidationError,
)
from src.calculators.money import Amount
from src.calculators.position import TaxPosition, compute_position
from src.calculators.safety_check import SafetyCheckResult, aggregate_by_category, evaluate
from src.calculators.tax_data import TAX_YEARS, TaxSettings, get_tax_settings
from src.calculators.wfh import (
    ActualCostInputs,
    WfhMethod,
    WfhResult,
    WfhValidation,
    calculate_wfh_deduction,
    recommended_max_hours,
    validate_wfh_hours,
)
from src.records.models import DeductionItem, IncomeItem, ReceiptRecord

logger = logging.getLogger(__name__)

router = APIRouter()


class TaxPositionRequest(BaseModel):
    """Request body for the /tax-position endpoint."""

    financial_year: str | None = None
    tax_settings: TaxSettings | None = None
    income: list[IncomeItem] = []
    deductions: list[DeductionItem] = []
    transactions: list[Transaction] = []


class WfhRequest(BaseModel):
    """Request body for the /wfh endpoint."""

    method: WfhMethod
    total_hours: int = 0
    actual_costs: ActualCostInputs | None = None
    work_use_percentage: Decimal = Field(default=Decimal("100"), ge=0, le=100)
    financial_year: str | None = None
    tax_settings: TaxSettings | None = None


class WfhHoursRequest(BaseModel):
    hours: int


class SafetyCheckRequest(BaseModel):
    """Request body for the /safety-check endpoint.

    Pre-aggregated totals and raw receipts may be combined.
    """

    occupation_code: str | None = None
    deductions_by_category: dict[str, Amount] = {}
    receipts: list[ReceiptRecord] = []


def _resolve_settings(financial_year: str | None, override: TaxSettings | None) -> TaxSettings:
    if override is not None:
        return override
    return get_tax_settings(financial_year or settings.default_tax_year)


@router.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/tax-years")
async def tax_years() -> dict[str, object]:
    """List financial years with built-in settings."""
    return {"tax_years": sorted(TAX_YEARS), "default": settings.default_tax_year}


@router.post("/tax-position", response_model=TaxPosition)
async def tax_position(body: TaxPositionRequest) -> TaxPosition | JSONResponse:
    """Estimate taxable income and tax payable for a period's records."""
    tax_settings = _resolve_settings(body.financial_year, body.tax_settings)
    try:
        return compute_position(tax_settings, body.income, body.deductions, body.transactions)
    except SettingsNotLoadedError as exc:
        return JSONResponse({"error": str(exc), "status": "not_ready"}, status_code=409)
    except ConfigurationError as exc:
        logger.warning("Tax position failed for %s: %s", tax_settings.financial_year, exc)
        return JSONResponse({"error": str(exc)}, status_code=422)
    except WfhValidationError as exc:
        return JSONResponse(
            {"error": "Invalid work from home record", "valid": False, "message": exc.validation.message},
            status_code=422,
        )


@router.post("/wfh/validate", response_model=WfhValidation)
async def wfh_validate(body: WfhHoursRequest) -> WfhValidation:
    """Check claimed WFH hours without computing a deduction."""
    return validate_wfh_hours(body.hours)


@router.get("/wfh/recommended-hours/{occupation_type}")
async def wfh_recommended_hours(occupation_type: str) -> dict[str, object]:
    """Conservative annual WFH hours for an occupation type."""
    return {"occupation_type": occupation_type, "max_hours": recommended_max_hours(occupation_type)}


@router.post("/wfh", response_model=WfhResult)
async def wfh(body: WfhRequest) -> WfhResult | JSONResponse:
    """Calculate a WFH deduction by the fixed rate or actual cost method."""
    tax_settings = _resolve_settings(body.financial_year, body.tax_settings)
    result = calculate_wfh_deduction(
        body.method,
        body.total_hours,
        body.actual_costs,
        body.work_use_percentage,
        tax_settings,
    )
    if isinstance(result, WfhValidation):
        return JSONResponse(result.model_dump(), status_code=422)
    return result


@router.post("/safety-check", response_model=SafetyCheckResult)
async def safety_check(body: SafetyCheckRequest, request: Request) -> SafetyCheckResult | JSONResponse:
    """Compare claimed deductions with occupation benchmarks."""
    totals = dict(body.deductions_by_category)
    for category, amount in aggregate_by_category(body.receipts).items():
        totals[category] = totals.get(category, Decimal("0")) + amount

    occupation_code = body.occupation_code or settings.default_occupation_code
    table = getattr(request.app.state, "benchmarks", None)
    try:
        return evaluate(totals, occupation_code, table)
    except BenchmarkTableError as exc:
        logger.error("Safety check unavailable: %s", exc)
        return JSONResponse({"error": str(exc)}, status_code=503)
