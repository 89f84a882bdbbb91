"""Deduction safety check against occupation benchmarks.

Source expense categories are rolled up into benchmark categories through a
configurable map, each total is compared with the occupation's typical claim,
and the ratio is classified as low, medium or high audit risk. The overall
risk is the worst item.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ValidationError, model_validator

from config import load_yaml_config
from config.settings import settings
from src.calculators.errors import BenchmarkTableError
from src.calculators.money import ZERO, Amount, parse_amount
from src.records.models import ReceiptRecord

logger = logging.getLogger(__name__)

DEFAULT_OCCUPATION = "default"

_SEPARATOR_RE = re.compile(r"[\s-]+")


class AuditRiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]


_RISK_RANK = {AuditRiskLevel.LOW: 0, AuditRiskLevel.MEDIUM: 1, AuditRiskLevel.HIGH: 2}


# --- Benchmark configuration ---


class RiskThresholds(BaseModel):
    """Claimed/benchmark ratios: up to ``low_max_ratio`` is low risk, up to
    ``medium_max_ratio`` is medium, anything above is high."""

    low_max_ratio: Decimal
    medium_max_ratio: Decimal

    @model_validator(mode="after")
    def _ordered(self) -> "RiskThresholds":
        if self.low_max_ratio <= 0:
            raise ValueError("low_max_ratio must be positive")
        if self.medium_max_ratio < self.low_max_ratio:
            raise ValueError("medium_max_ratio must not be below low_max_ratio")
        return self


class OccupationBenchmark(BaseModel):
    name: str
    averages: dict[str, Amount] = {}
    thresholds: RiskThresholds


class BenchmarkTable(BaseModel):
    """Occupation benchmarks plus the source -> benchmark category map."""

    category_map: dict[str, str]
    fallback_category: str = "other"
    occupations: dict[str, OccupationBenchmark]
    labels: dict[str, str] = {}
    # Claims at or below this are never flagged high, whatever the ratio
    materiality_threshold: Amount | None = None

    @model_validator(mode="after")
    def _has_default(self) -> "BenchmarkTable":
        if DEFAULT_OCCUPATION not in self.occupations:
            raise ValueError(f"Benchmark table needs a '{DEFAULT_OCCUPATION}' occupation")
        return self

    @classmethod
    def from_config(cls, data: Any) -> "BenchmarkTable":
        """Build a table from parsed config data, as a configuration error on failure."""
        if not data:
            raise BenchmarkTableError("Benchmark table is empty.")
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise BenchmarkTableError(f"Invalid benchmark table: {exc}") from exc

    def occupation(self, occupation_code: str | None) -> tuple[str, OccupationBenchmark]:
        """Look up an occupation, falling back to the default profile."""
        if occupation_code and occupation_code in self.occupations:
            return occupation_code, self.occupations[occupation_code]
        if occupation_code and occupation_code != DEFAULT_OCCUPATION:
            logger.info("No benchmarks for occupation %s, using default", occupation_code)
        return DEFAULT_OCCUPATION, self.occupations[DEFAULT_OCCUPATION]

    def benchmark_category(self, source_category: str) -> str:
        key = _SEPARATOR_RE.sub("_", source_category.strip().lower())
        mapped = self.category_map.get(key)
        if mapped is None:
            logger.debug("Unmapped expense category %r -> %s", source_category, self.fallback_category)
            return self.fallback_category
        return mapped

    def label(self, category: str) -> str:
        return self.labels.get(category) or category.replace("_", " ").title()


def load_benchmark_table(filename: str | None = None) -> BenchmarkTable:
    """Load the benchmark table YAML from the config/ directory."""
    filename = filename or settings.benchmarks_file
    try:
        data = load_yaml_config(filename)
    except FileNotFoundError as exc:
        raise BenchmarkTableError(f"Benchmark table not found: {filename}") from exc
    table = BenchmarkTable.from_config(data)
    logger.info(
        "Loaded benchmark table %s (%d occupations, %d mapped categories)",
        filename, len(table.occupations), len(table.category_map),
    )
    return table


# --- Results ---


class SafetyCheckItem(BaseModel):
    category: str
    label: str
    claimed_amount: Decimal
    benchmark_amount: Decimal
    ratio: Decimal | None  # None when there is no benchmark to compare with
    risk_level: AuditRiskLevel
    message: str


class SafetyCheckResult(BaseModel):
    items: list[SafetyCheckItem]
    overall_risk: AuditRiskLevel
    risk_percentage: Decimal  # 0-100, for a gauge
    occupation_code: str
    occupation_name: str
    total_claimed: Decimal
    total_benchmark: Decimal


# --- Engine ---


def aggregate_by_category(receipts: Iterable[ReceiptRecord]) -> dict[str, Decimal]:
    """Sum receipt amounts per expense category."""
    totals: dict[str, Decimal] = {}
    for receipt in receipts:
        category = receipt.category.value
        totals[category] = totals.get(category, ZERO) + receipt.amount
    return totals


def _classify(
    claimed: Decimal,
    benchmark: Decimal,
    occupation: OccupationBenchmark,
    materiality_threshold: Decimal | None,
) -> tuple[Decimal | None, AuditRiskLevel, str]:
    ratio = claimed / benchmark if benchmark > 0 else None
    thresholds = occupation.thresholds

    if ratio is not None and ratio <= thresholds.low_max_ratio:
        return ratio, AuditRiskLevel.LOW, "Within the typical range for your occupation"

    if ratio is not None and ratio <= thresholds.medium_max_ratio:
        above = ((ratio - 1) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return ratio, AuditRiskLevel.MEDIUM, f"{above}% above typical claims - may attract scrutiny"

    if materiality_threshold is not None and claimed <= materiality_threshold:
        return ratio, AuditRiskLevel.LOW, "Above typical claims, but the amount is low (low risk)"

    if ratio is None:
        return None, AuditRiskLevel.HIGH, "No typical claim for this category - high audit risk"
    return ratio, AuditRiskLevel.HIGH, "Significantly above typical claims - high audit risk"


def _risk_percentage(items: list[SafetyCheckItem], total_ratio: Decimal) -> Decimal:
    high = sum(1 for item in items if item.risk_level is AuditRiskLevel.HIGH)
    medium = sum(1 for item in items if item.risk_level is AuditRiskLevel.MEDIUM)
    if high:
        return Decimal(75 + min(high * 5, 25))
    if medium:
        return Decimal(min(35 + medium * 10, 65))
    return min(total_ratio * 20, Decimal(33))


def evaluate(
    deductions_by_category: Mapping[Any, Any],
    occupation_code: str | None,
    table: BenchmarkTable | None,
) -> SafetyCheckResult:
    """Score claimed deductions against the occupation's benchmarks.

    Args:
        deductions_by_category: Claimed totals keyed by source expense category.
        occupation_code: The user's occupation code; unknown codes use the
            default profile.
        table: Benchmark table (see ``load_benchmark_table``).

    Raises:
        BenchmarkTableError: if no table is configured.
    """
    if table is None:
        raise BenchmarkTableError("No benchmark table configured.")

    code, occupation = table.occupation(occupation_code)

    claimed_by_benchmark: dict[str, Decimal] = {}
    for source_category, amount in deductions_by_category.items():
        category = table.benchmark_category(getattr(source_category, "value", str(source_category)))
        claimed_by_benchmark[category] = claimed_by_benchmark.get(category, ZERO) + parse_amount(amount)

    items: list[SafetyCheckItem] = []
    total_claimed = ZERO
    total_benchmark = ZERO
    for category, claimed in claimed_by_benchmark.items():
        benchmark = occupation.averages.get(category, ZERO)
        total_claimed += claimed
        total_benchmark += benchmark
        if claimed == 0 and benchmark == 0:
            continue

        ratio, level, message = _classify(claimed, benchmark, occupation, table.materiality_threshold)
        items.append(SafetyCheckItem(
            category=category,
            label=table.label(category),
            claimed_amount=claimed,
            benchmark_amount=benchmark,
            ratio=ratio,
            risk_level=level,
            message=message,
        ))

    items.sort(key=lambda item: -item.risk_level.rank)
    overall = max((item.risk_level for item in items), key=lambda level: level.rank, default=AuditRiskLevel.LOW)
    total_ratio = total_claimed / total_benchmark if total_benchmark > 0 else ZERO

    logger.debug("Safety check for %s: %d items, overall %s", code, len(items), overall.value)

    return SafetyCheckResult(
        items=items,
        overall_risk=overall,
        risk_percentage=_risk_percentage(items, total_ratio),
        occupation_code=code,
        occupation_name=occupation.name,
        total_claimed=total_claimed,
        total_benchmark=total_benchmark,
    )
