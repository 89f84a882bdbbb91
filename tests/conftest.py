"""Shared test fixtures."""

from decimal import Decimal
from typing import Any

import pytest

from src.calculators.safety_check import BenchmarkTable
from src.calculators.tax_data import TAX_YEARS, TaxBracket, TaxSettings


def make_bracket(
    min_income: int,
    max_income: int | None,
    rate: str,
    base_tax: str = "0",
) -> TaxBracket:
    return TaxBracket(
        min_income=min_income,
        max_income=max_income,
        rate=Decimal(rate),
        base_tax=Decimal(base_tax),
    )


def make_benchmark_table(**overrides: Any) -> BenchmarkTable:
    """Synthetic benchmark table: two work categories rolled into one bucket."""
    data: dict[str, Any] = {
        "category_map": {
            "work_clothing": "equipment",
            "tools_equipment": "equipment",
            "self_education": "education",
            "other": "other",
        },
        "fallback_category": "other",
        "labels": {"equipment": "Work Equipment"},
        "occupations": {
            "default": {
                "name": "Default Worker",
                "averages": {"equipment": "100", "education": "200", "other": "50"},
                "thresholds": {"low_max_ratio": "1.0", "medium_max_ratio": "1.5"},
            },
            "1234": {
                "name": "Test Engineer",
                "averages": {"equipment": "1000", "education": "200"},
                "thresholds": {"low_max_ratio": "1.0", "medium_max_ratio": "1.5"},
            },
        },
    }
    data.update(overrides)
    return BenchmarkTable.model_validate(data)


@pytest.fixture
def simple_brackets() -> list[TaxBracket]:
    """Tax-free threshold then a flat 19%."""
    return [
        make_bracket(0, 18200, "0"),
        make_bracket(18201, None, "19"),
    ]


@pytest.fixture
def simple_settings(simple_brackets: list[TaxBracket]) -> TaxSettings:
    return TaxSettings(financial_year="2024-2025", tax_brackets=simple_brackets, wfh_fixed_rate="0.67")


@pytest.fixture
def au_settings() -> TaxSettings:
    """Built-in 2024-25 resident schedule."""
    return TAX_YEARS["2024-2025"]


@pytest.fixture
def benchmark_table() -> BenchmarkTable:
    return make_benchmark_table()
