"""Tests for the deduction safety check."""

from decimal import Decimal

import pytest

from conftest import make_benchmark_table
from src.calculators.errors import BenchmarkTableError
from src.calculators.safety_check import (
    AuditRiskLevel,
    BenchmarkTable,
    aggregate_by_category,
    evaluate,
    load_benchmark_table,
)
from src.records.models import ExpenseCategory, ReceiptRecord


class TestClassification:
    def test_within_range(self, benchmark_table: BenchmarkTable) -> None:
        """Two source categories roll up into one benchmark bucket."""
        result = evaluate({"work_clothing": "500", "tools_equipment": "300"}, "1234", benchmark_table)
        assert len(result.items) == 1
        item = result.items[0]
        assert item.category == "equipment"
        assert item.label == "Work Equipment"
        assert item.claimed_amount == Decimal("800")
        assert item.ratio == Decimal("0.8")
        assert item.risk_level is AuditRiskLevel.LOW
        assert result.overall_risk is AuditRiskLevel.LOW

    def test_medium(self, benchmark_table: BenchmarkTable) -> None:
        result = evaluate({"work_clothing": "120"}, "default", benchmark_table)
        item = result.items[0]
        assert item.risk_level is AuditRiskLevel.MEDIUM
        assert item.message == "20% above typical claims - may attract scrutiny"

    def test_high(self, benchmark_table: BenchmarkTable) -> None:
        result = evaluate({"self_education": "400"}, "default", benchmark_table)
        assert result.items[0].risk_level is AuditRiskLevel.HIGH
        assert result.items[0].label == "Education"
        assert result.overall_risk is AuditRiskLevel.HIGH

    def test_no_benchmark_is_high(self, benchmark_table: BenchmarkTable) -> None:
        result = evaluate({"other": "10"}, "1234", benchmark_table)
        item = result.items[0]
        assert item.ratio is None
        assert item.risk_level is AuditRiskLevel.HIGH
        assert item.message.startswith("No typical claim")

    def test_small_claims_are_low(self) -> None:
        table = make_benchmark_table(materiality_threshold="300")
        result = evaluate({"other": "10"}, "1234", table)
        assert result.items[0].risk_level is AuditRiskLevel.LOW
        assert result.overall_risk is AuditRiskLevel.LOW

    def test_materiality_does_not_hide_large_claims(self) -> None:
        table = make_benchmark_table(materiality_threshold="300")
        result = evaluate({"self_education": "400"}, "default", table)
        assert result.items[0].risk_level is AuditRiskLevel.HIGH


class TestEvaluate:
    def test_unknown_occupation_uses_default(self, benchmark_table: BenchmarkTable) -> None:
        result = evaluate({"work_clothing": "50"}, "9999", benchmark_table)
        assert result.occupation_code == "default"
        assert result.occupation_name == "Default Worker"

    def test_unmapped_category_uses_fallback(self, benchmark_table: BenchmarkTable) -> None:
        result = evaluate({"Pet Grooming": "40"}, "default", benchmark_table)
        assert result.items[0].category == "other"

    def test_category_keys_are_normalised(self, benchmark_table: BenchmarkTable) -> None:
        result = evaluate({"Self-Education": "100"}, "default", benchmark_table)
        assert result.items[0].category == "education"

    def test_enum_keys(self, benchmark_table: BenchmarkTable) -> None:
        result = evaluate({ExpenseCategory.SELF_EDUCATION: Decimal("100")}, "default", benchmark_table)
        assert result.items[0].category == "education"

    def test_nothing_claimed_nothing_benchmarked_is_skipped(self, benchmark_table: BenchmarkTable) -> None:
        result = evaluate({"other": "0"}, "1234", benchmark_table)
        assert result.items == []
        assert result.overall_risk is AuditRiskLevel.LOW
        assert result.risk_percentage == 0

    def test_empty_claims(self, benchmark_table: BenchmarkTable) -> None:
        result = evaluate({}, None, benchmark_table)
        assert result.items == []
        assert result.total_claimed == 0

    def test_high_items_sort_first(self, benchmark_table: BenchmarkTable) -> None:
        result = evaluate(
            {"work_clothing": "90", "self_education": "400", "other": "60"},
            "default",
            benchmark_table,
        )
        levels = [item.risk_level for item in result.items]
        assert levels == [AuditRiskLevel.HIGH, AuditRiskLevel.MEDIUM, AuditRiskLevel.LOW]

    def test_overall_is_worst_item(self, benchmark_table: BenchmarkTable) -> None:
        result = evaluate({"work_clothing": "90", "other": "60"}, "default", benchmark_table)
        assert result.overall_risk is AuditRiskLevel.MEDIUM

    @pytest.mark.parametrize(
        ("claims", "expected"),
        [
            ({"self_education": "400"}, Decimal("80")),
            ({"self_education": "400", "work_clothing": "1000"}, Decimal("85")),
            ({"work_clothing": "120"}, Decimal("45")),
            ({"self_education": "200"}, Decimal("20")),
        ],
    )
    def test_risk_percentage(
        self, benchmark_table: BenchmarkTable, claims: dict[str, str], expected: Decimal
    ) -> None:
        assert evaluate(claims, "default", benchmark_table).risk_percentage == expected

    def test_totals(self, benchmark_table: BenchmarkTable) -> None:
        result = evaluate({"work_clothing": "100", "self_education": "100"}, "default", benchmark_table)
        assert result.total_claimed == Decimal("200")
        assert result.total_benchmark == Decimal("300")

    def test_no_table(self) -> None:
        with pytest.raises(BenchmarkTableError):
            evaluate({"other": "10"}, "default", None)


class TestBenchmarkTable:
    def test_empty_config(self) -> None:
        with pytest.raises(BenchmarkTableError):
            BenchmarkTable.from_config({})

    def test_missing_default_occupation(self) -> None:
        data = {
            "category_map": {"other": "other"},
            "occupations": {
                "1234": {
                    "name": "Test",
                    "averages": {"other": "10"},
                    "thresholds": {"low_max_ratio": "1", "medium_max_ratio": "2"},
                },
            },
        }
        with pytest.raises(BenchmarkTableError, match="default"):
            BenchmarkTable.from_config(data)

    def test_thresholds_out_of_order(self) -> None:
        data = {
            "category_map": {"other": "other"},
            "occupations": {
                "default": {
                    "name": "Default",
                    "thresholds": {"low_max_ratio": "2", "medium_max_ratio": "1"},
                },
            },
        }
        with pytest.raises(BenchmarkTableError):
            BenchmarkTable.from_config(data)

    def test_bundled_table_loads(self) -> None:
        table = load_benchmark_table()
        assert "default" in table.occupations
        assert table.benchmark_category("union_fees") == "professional_subscriptions"
        assert table.materiality_threshold == Decimal("300")

    def test_bundled_table_covers_receipt_categories(self) -> None:
        table = load_benchmark_table()
        for category in ExpenseCategory:
            assert category.value in table.category_map

    def test_missing_file(self) -> None:
        with pytest.raises(BenchmarkTableError, match="not found"):
            load_benchmark_table("no_such_file.yaml")


def test_aggregate_by_category() -> None:
    receipts = [
        ReceiptRecord(category="self_education", amount="100"),
        ReceiptRecord(category="self_education", amount="50.50"),
        ReceiptRecord(category="travel", amount="bad"),
    ]
    assert aggregate_by_category(receipts) == {
        "self_education": Decimal("150.50"),
        "travel": Decimal("0"),
    }
