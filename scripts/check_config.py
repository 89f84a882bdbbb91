"""Validate built-in tax settings and the occupation benchmark table.

Usage:
    # Check every built-in bracket schedule and config/benchmarks.yaml
    python scripts/check_config.py

    # Check a different benchmark file in config/
    python scripts/check_config.py --benchmarks benchmarks_2025.yaml

    # Print the tax on a sample income for each year
    python scripts/check_config.py --sample-income 85000

    # Verbose logging
    python scripts/check_config.py -v
"""

import argparse
import logging
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.calculators.errors import ConfigurationError
from src.calculators.income_tax import calculate_total_tax, validate_brackets
from src.calculators.money import round_money
from src.calculators.safety_check import load_benchmark_table
from src.calculators.tax_data import TAX_YEARS

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate tax engine configuration")
    parser.add_argument("--benchmarks", help="Benchmark YAML file in config/ (default from settings)")
    parser.add_argument(
        "--sample-income",
        type=Decimal,
        help="Taxable income to run through each year's schedule",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return parser.parse_args(argv)


def check_tax_years(sample_income: Decimal | None) -> int:
    """Validate every built-in schedule. Returns the number of failures."""
    failures = 0
    for year, tax_settings in sorted(TAX_YEARS.items()):
        try:
            validate_brackets(tax_settings.tax_brackets or [])
        except ConfigurationError as exc:
            logger.error("%s: %s", year, exc)
            failures += 1
            continue

        logger.info("%s: %d brackets OK", year, len(tax_settings.tax_brackets or []))
        if sample_income is not None:
            breakdown = calculate_total_tax(sample_income, tax_settings)
            logger.info(
                "%s: income %s -> income tax %s, Medicare levy %s, total %s",
                year,
                sample_income,
                round_money(breakdown.income_tax),
                round_money(breakdown.medicare_levy),
                round_money(breakdown.total_tax),
            )
    return failures


def check_benchmarks(filename: str | None) -> int:
    """Load the benchmark table and sanity-check its category map."""
    try:
        table = load_benchmark_table(filename)
    except ConfigurationError as exc:
        logger.error("Benchmarks: %s", exc)
        return 1

    failures = 0
    targets = set(table.category_map.values()) | {table.fallback_category}
    for code, occupation in sorted(table.occupations.items()):
        missing = sorted(targets - set(occupation.averages))
        if missing:
            # Missing averages make any claim in those categories high risk
            logger.warning("Occupation %s (%s) has no average for: %s", code, occupation.name, ", ".join(missing))
        unknown = sorted(set(occupation.averages) - targets)
        if unknown:
            logger.error("Occupation %s lists unmapped categories: %s", code, ", ".join(unknown))
            failures += 1
    return failures


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    failures = check_tax_years(args.sample_income) + check_benchmarks(args.benchmarks)
    if failures:
        logger.error("%d configuration problem(s) found.", failures)
        return 1
    logger.info("Configuration OK.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
