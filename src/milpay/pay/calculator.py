"""Military pay estimation.

Builds a monthly pay estimate from the lookup tables: base pay and
special pays are taxable; BAH, BAS and combat-related pays
(hostile fire, imminent danger, family separation) are tax-free.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

import structlog

from milpay.pay.tables import (
    SPECIAL_PAY_RATES,
    get_bah_rate,
    get_base_pay,
    get_bas_rate,
    get_flight_pay_rate,
)

logger = structlog.get_logger()

CENTS = Decimal("0.01")
ZERO = Decimal("0")
DAYS_PER_PAY_MONTH = Decimal("30")

# code -> (display name, tax-free)
SPECIAL_PAYS: dict[str, tuple[str, bool]] = {
    "hostile_fire": ("Hostile Fire Pay", True),
    "imminent_danger": ("Imminent Danger Pay", True),
    "family_separation": ("Family Separation Allowance", True),
    "flight_pay": ("Flight Pay", False),
    "jump_pay": ("Jump Pay", False),
    "dive_pay": ("Dive Pay", False),
}


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


# =============================================================================
# Data Structures
# =============================================================================


@dataclass
class SpecialPayLine:
    code: str
    name: str
    amount: Decimal
    is_tax_free: bool


@dataclass
class PayEstimate:
    """Monthly pay estimate."""

    pay_grade: str
    base_pay: Decimal = ZERO
    bah: Decimal = ZERO
    bas: Decimal = ZERO
    special_pays: list[SpecialPayLine] = field(default_factory=list)
    total_gross: Decimal = ZERO
    taxable_income: Decimal = ZERO
    tax_free_income: Decimal = ZERO


class IncomeFrequency(str, Enum):
    MONTHLY = "monthly"
    BIWEEKLY = "biweekly"
    WEEKLY = "weekly"
    # Irregular; the amount is already a monthly estimate
    DRILL = "drill"


@dataclass
class IncomeSource:
    name: str
    amount: Decimal
    frequency: IncomeFrequency = IncomeFrequency.MONTHLY
    is_tax_free: bool = False


@dataclass
class MonthlyIncome:
    total: Decimal
    taxable: Decimal
    tax_free: Decimal


# =============================================================================
# Calculations
# =============================================================================


def _special_pay_amount(code: str, pay_grade: str) -> Decimal:
    if code == "flight_pay":
        return get_flight_pay_rate(pay_grade)
    return SPECIAL_PAY_RATES[code]


def calculate_military_pay(
    pay_grade: str,
    years_of_service: Decimal | float | int,
    mha_code: str | None = None,
    has_dependents: bool = False,
    special_pays: Iterable[str] = (),
) -> PayEstimate:
    """Estimate monthly pay for a grade, location and set of special pays.

    Args:
        pay_grade: Grade such as "E-5" or "O3"
        years_of_service: Years served, fractional years allowed
        mha_code: Military Housing Area for BAH; no BAH when omitted or unknown
        has_dependents: Selects the with-dependents BAH rate
        special_pays: Codes from SPECIAL_PAYS; unknown codes are skipped

    Raises:
        UnknownPayGrade: If the grade is not in the base pay table
    """
    estimate = PayEstimate(pay_grade=pay_grade)
    estimate.base_pay = get_base_pay(pay_grade, years_of_service)
    estimate.taxable_income = estimate.base_pay

    if mha_code:
        bah = get_bah_rate(mha_code, pay_grade, has_dependents)
        if bah is None:
            logger.warning("bah_rate_not_found", mha_code=mha_code, pay_grade=pay_grade)
        estimate.bah = bah or ZERO
        estimate.tax_free_income += estimate.bah

    estimate.bas = get_bas_rate(pay_grade)
    estimate.tax_free_income += estimate.bas

    for code in special_pays:
        if code not in SPECIAL_PAYS:
            logger.warning("unknown_special_pay", code=code)
            continue
        name, tax_free = SPECIAL_PAYS[code]
        amount = _special_pay_amount(code, pay_grade)
        estimate.special_pays.append(SpecialPayLine(code, name, amount, tax_free))
        if tax_free:
            estimate.tax_free_income += amount
        else:
            estimate.taxable_income += amount

    estimate.total_gross = (
        estimate.base_pay
        + estimate.bah
        + estimate.bas
        + sum((line.amount for line in estimate.special_pays), ZERO)
    )
    return estimate


def calculate_drill_pay(
    pay_grade: str,
    years_of_service: Decimal | float | int,
    drill_periods: int = 4,
) -> Decimal:
    """Reserve drill pay: each period pays 1/30 of monthly base pay.

    A standard drill weekend is four periods.
    """
    daily = get_base_pay(pay_grade, years_of_service) / DAYS_PER_PAY_MONTH
    return _cents(daily * drill_periods)


def calculate_at_pay(
    pay_grade: str,
    years_of_service: Decimal | float | int,
    days: int = 15,
) -> Decimal:
    """Annual Training pay at the daily base rate (typically 15 days)."""
    daily = get_base_pay(pay_grade, years_of_service) / DAYS_PER_PAY_MONTH
    return _cents(daily * days)


def to_monthly(amount: Decimal, frequency: IncomeFrequency | str) -> Decimal:
    frequency = IncomeFrequency(frequency)
    if frequency == IncomeFrequency.BIWEEKLY:
        return amount * 26 / 12
    if frequency == IncomeFrequency.WEEKLY:
        return amount * 52 / 12
    return amount


def calculate_total_monthly_income(sources: Iterable[IncomeSource]) -> MonthlyIncome:
    """Sum income sources as monthly amounts, split taxable vs tax-free."""
    taxable = ZERO
    tax_free = ZERO
    for source in sources:
        monthly = to_monthly(source.amount, source.frequency)
        if source.is_tax_free:
            tax_free += monthly
        else:
            taxable += monthly
    return MonthlyIncome(
        total=_cents(taxable + tax_free),
        taxable=_cents(taxable),
        tax_free=_cents(tax_free),
    )
