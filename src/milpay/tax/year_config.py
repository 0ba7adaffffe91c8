"""Tax year-specific brackets, deductions and payroll tax constants.

This module centralizes tax year-specific values like federal brackets,
standard deductions and FICA limits so calculators never hardcode them.
Bracket tables carry a precomputed ``base_tax`` per bracket; use
``verify_brackets`` to check a table is internally consistent.

Example:
    >>> from milpay.tax.year_config import FilingStatus, get_tax_year_config
    >>> config = get_tax_year_config(2024)
    >>> config.standard_deduction(FilingStatus.SINGLE)
    Decimal('14600')
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

import structlog

logger = structlog.get_logger()


class FilingStatus(str, Enum):
    """Federal filing status."""

    SINGLE = "single"
    MFJ = "mfj"
    MFS = "mfs"
    HOH = "hoh"


@dataclass(frozen=True)
class TaxBracket:
    """One progressive bracket.

    Attributes:
        min: Lower bound of adjusted income for this bracket.
        max: Upper bound, or None for the unbounded top bracket.
        rate: Marginal rate as a decimal (0.22 = 22%).
        base_tax: Cumulative tax of all lower brackets at their own max.
    """

    min: Decimal
    max: Decimal | None
    rate: Decimal
    base_tax: Decimal

    def contains(self, income: Decimal) -> bool:
        """True when income falls in (min, max]."""
        return income > self.min and (self.max is None or income <= self.max)


def _brackets(*rows: tuple[str, str | None, str, str]) -> tuple[TaxBracket, ...]:
    return tuple(
        TaxBracket(
            min=Decimal(lo),
            max=Decimal(hi) if hi is not None else None,
            rate=Decimal(rate),
            base_tax=Decimal(base),
        )
        for lo, hi, rate, base in rows
    )


@dataclass(frozen=True)
class TaxYearConfig:
    """Tax year-specific constants and thresholds.

    All monetary values are Decimal. This dataclass is frozen to prevent
    accidental modification.

    Attributes:
        tax_year: The tax year these values apply to.
        brackets: Federal bracket table per filing status.
        standard_deductions: Standard deduction per filing status.
        ss_wage_base: Social Security wage base limit.
        ss_rate_employee: Employee Social Security rate.
        medicare_rate: Medicare rate on all wages.
        additional_medicare_rate: Surtax on wages over the filing threshold.
        additional_medicare_thresholds: Surtax threshold per filing status.
    """

    tax_year: int
    brackets: dict[FilingStatus, tuple[TaxBracket, ...]]
    standard_deductions: dict[FilingStatus, Decimal]

    # Social Security / Medicare
    ss_wage_base: Decimal
    ss_rate_employee: Decimal = Decimal("0.062")
    medicare_rate: Decimal = Decimal("0.0145")
    additional_medicare_rate: Decimal = Decimal("0.009")
    additional_medicare_thresholds: dict[FilingStatus, Decimal] = field(
        default_factory=lambda: {
            FilingStatus.SINGLE: Decimal("200000"),
            FilingStatus.MFJ: Decimal("250000"),
            FilingStatus.MFS: Decimal("125000"),
        }
    )

    def brackets_for(self, filing_status: FilingStatus) -> tuple[TaxBracket, ...]:
        """Bracket table for a filing status (single when not listed)."""
        return self.brackets.get(filing_status, self.brackets[FilingStatus.SINGLE])

    def standard_deduction(self, filing_status: FilingStatus) -> Decimal:
        """Standard deduction for a filing status (single when not listed)."""
        return self.standard_deductions.get(
            filing_status, self.standard_deductions[FilingStatus.SINGLE]
        )

    def additional_medicare_threshold(self, filing_status: FilingStatus) -> Decimal:
        """Additional Medicare threshold; head of household uses the single threshold."""
        return self.additional_medicare_thresholds.get(
            filing_status, self.additional_medicare_thresholds[FilingStatus.SINGLE]
        )


# 2024 Configuration - IRS Revenue Procedure 2023-34
TAX_YEAR_2024 = TaxYearConfig(
    tax_year=2024,
    brackets={
        FilingStatus.SINGLE: _brackets(
            ("0", "11600", "0.10", "0"),
            ("11600", "47150", "0.12", "1160"),
            ("47150", "100525", "0.22", "5426"),
            ("100525", "191950", "0.24", "17168.50"),
            ("191950", "243725", "0.32", "39110.50"),
            ("243725", "609350", "0.35", "55678.50"),
            ("609350", None, "0.37", "183647.25"),
        ),
        FilingStatus.MFJ: _brackets(
            ("0", "23200", "0.10", "0"),
            ("23200", "94300", "0.12", "2320"),
            ("94300", "201050", "0.22", "10852"),
            ("201050", "383900", "0.24", "34337"),
            ("383900", "487450", "0.32", "78221"),
            ("487450", "731200", "0.35", "111357"),
            ("731200", None, "0.37", "196669.50"),
        ),
        FilingStatus.MFS: _brackets(
            ("0", "11600", "0.10", "0"),
            ("11600", "47150", "0.12", "1160"),
            ("47150", "100525", "0.22", "5426"),
            ("100525", "191950", "0.24", "17168.50"),
            ("191950", "243725", "0.32", "39110.50"),
            ("243725", "365600", "0.35", "55678.50"),
            ("365600", None, "0.37", "98334.75"),
        ),
        FilingStatus.HOH: _brackets(
            ("0", "16550", "0.10", "0"),
            ("16550", "63100", "0.12", "1655"),
            ("63100", "100500", "0.22", "7241"),
            ("100500", "191950", "0.24", "15469"),
            ("191950", "243700", "0.32", "37417"),
            ("243700", "609350", "0.35", "53977"),
            ("609350", None, "0.37", "181954.50"),
        ),
    },
    standard_deductions={
        FilingStatus.SINGLE: Decimal("14600"),
        FilingStatus.MFJ: Decimal("29200"),
        FilingStatus.MFS: Decimal("14600"),
        FilingStatus.HOH: Decimal("21900"),
    },
    ss_wage_base=Decimal("168600"),
)

# 2025 Configuration - projected values (update when IRS releases official numbers)
TAX_YEAR_2025 = TaxYearConfig(
    tax_year=2025,
    brackets={
        FilingStatus.SINGLE: _brackets(
            ("0", "11925", "0.10", "0"),
            ("11925", "48475", "0.12", "1192.50"),
            ("48475", "103350", "0.22", "5578.50"),
            ("103350", "197300", "0.24", "17651"),
            ("197300", "250525", "0.32", "40199"),
            ("250525", "626350", "0.35", "57231"),
            ("626350", None, "0.37", "188769.75"),
        ),
        FilingStatus.MFJ: _brackets(
            ("0", "23850", "0.10", "0"),
            ("23850", "96950", "0.12", "2385"),
            ("96950", "206700", "0.22", "11157"),
            ("206700", "394600", "0.24", "35302"),
            ("394600", "501050", "0.32", "80398"),
            ("501050", "751600", "0.35", "114462"),
            ("751600", None, "0.37", "202154.50"),
        ),
        FilingStatus.MFS: _brackets(
            ("0", "11925", "0.10", "0"),
            ("11925", "48475", "0.12", "1192.50"),
            ("48475", "103350", "0.22", "5578.50"),
            ("103350", "197300", "0.24", "17651"),
            ("197300", "250525", "0.32", "40199"),
            ("250525", "375800", "0.35", "57231"),
            ("375800", None, "0.37", "101077.25"),
        ),
        FilingStatus.HOH: _brackets(
            ("0", "17000", "0.10", "0"),
            ("17000", "64850", "0.12", "1700"),
            ("64850", "103350", "0.22", "7442"),
            ("103350", "197300", "0.24", "15912"),
            ("197300", "250500", "0.32", "38460"),
            ("250500", "626350", "0.35", "55484"),
            ("626350", None, "0.37", "187031.50"),
        ),
    },
    standard_deductions={
        FilingStatus.SINGLE: Decimal("15000"),
        FilingStatus.MFJ: Decimal("30000"),
        FilingStatus.MFS: Decimal("15000"),
        FilingStatus.HOH: Decimal("22500"),
    },
    ss_wage_base=Decimal("176100"),
)

# Registry of available tax year configurations
TAX_YEAR_CONFIGS: dict[int, TaxYearConfig] = {
    2024: TAX_YEAR_2024,
    2025: TAX_YEAR_2025,
}


def get_tax_year_config(year: int) -> TaxYearConfig:
    """Get configuration for a specific tax year.

    Args:
        year: The tax year (e.g., 2024).

    Returns:
        TaxYearConfig for the specified year.

    Raises:
        ValueError: If no configuration exists for the requested year.
    """
    if year not in TAX_YEAR_CONFIGS:
        available = sorted(TAX_YEAR_CONFIGS.keys())
        raise ValueError(
            f"No tax configuration for year {year}. Available years: {available}"
        )
    return TAX_YEAR_CONFIGS[year]


def resolve_tax_year_config(year: int) -> TaxYearConfig:
    """Get the closest embedded configuration for an estimate.

    Uses the exact year when embedded, otherwise the latest year not after
    the requested one, or the earliest table for years before all of them.
    """
    if year in TAX_YEAR_CONFIGS:
        return TAX_YEAR_CONFIGS[year]

    available = sorted(TAX_YEAR_CONFIGS.keys())
    earlier = [y for y in available if y < year]
    chosen = earlier[-1] if earlier else available[0]
    logger.warning("tax_year_not_embedded", requested=year, using=chosen)
    return TAX_YEAR_CONFIGS[chosen]


def verify_brackets(brackets: tuple[TaxBracket, ...]) -> list[str]:
    """Check a bracket table for internal consistency.

    Checks:
    - The first bracket starts at zero
    - Brackets are contiguous (each min equals the previous max)
    - Only the last bracket is unbounded
    - Each base_tax equals the cumulative tax of the lower brackets

    Returns:
        List of problems found (empty if the table is consistent).
    """
    problems: list[str] = []
    if not brackets:
        return ["Bracket table is empty"]

    if brackets[0].min != 0:
        problems.append(f"First bracket starts at {brackets[0].min}, expected 0")
    if brackets[-1].max is not None:
        problems.append("Top bracket must be unbounded")

    cumulative = Decimal("0")
    for index, bracket in enumerate(brackets):
        if bracket.base_tax != cumulative:
            problems.append(
                f"Bracket {index} base_tax {bracket.base_tax} != cumulative {cumulative}"
            )
        if bracket.max is None:
            if index != len(brackets) - 1:
                problems.append(f"Bracket {index} is unbounded but not last")
            break
        if index + 1 < len(brackets) and brackets[index + 1].min != bracket.max:
            problems.append(
                f"Gap or overlap between bracket {index} and {index + 1}"
            )
        cumulative += (bracket.max - bracket.min) * bracket.rate

    return problems
