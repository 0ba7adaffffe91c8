"""Military retirement pay and concurrent receipt.

Retired pay is ``base × min(years × rate, 75%)``. A retiree with a VA
rating waives retired pay dollar for dollar against VA compensation;
CRDP (50%+ rating) or CRSC (combat-related rating) restores some or all
of the waived amount. Only one of the two can be received, so the larger
restoration is chosen. VA compensation and CRSC are tax-free; retired
pay and CRDP are taxable.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

import structlog
from pydantic import BaseModel, ConfigDict, Field

from milpay.benefits.va import get_va_compensation

logger = structlog.get_logger()

CENTS = Decimal("0.01")
ZERO = Decimal("0")

MULTIPLIER_CAP = Decimal("0.75")

CRDP_MINIMUM_RATING = 50
CRSC_MINIMUM_RATING = 10

SBP_COST_RATE = Decimal("0.065")
SBP_COVERAGE_OPTIONS = (Decimal("0.25"), Decimal("0.50"), Decimal("0.75"), Decimal("1.0"))
SBP_SPOUSE_RATE = Decimal("0.55")


class RetirementSystem(str, Enum):
    LEGACY_HIGH3 = "legacy_high3"
    FINAL_PAY = "final_pay"
    REDUX = "redux"
    BRS = "brs"


# Percent of base pay earned per year of service
RETIREMENT_MULTIPLIERS: dict[RetirementSystem, Decimal] = {
    RetirementSystem.LEGACY_HIGH3: Decimal("0.025"),
    RetirementSystem.FINAL_PAY: Decimal("0.025"),
    RetirementSystem.REDUX: Decimal("0.02"),
    RetirementSystem.BRS: Decimal("0.02"),
}


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


# =============================================================================
# Retired Pay
# =============================================================================


def retirement_multiplier(years_of_service: Decimal | int, system: RetirementSystem | str) -> Decimal:
    """Fraction of base pay paid in retirement, capped at 75% for every system."""
    rate = RETIREMENT_MULTIPLIERS[RetirementSystem(system)]
    return min(Decimal(years_of_service) * rate, MULTIPLIER_CAP)


def calculate_retirement_pay(
    years_of_service: Decimal | int,
    high_three_base_pay: Decimal,
    system: RetirementSystem | str,
) -> Decimal:
    """Gross monthly retired pay.

    Example:
        BRS, 20 years, $6,000 high-3 -> 6000 × 0.40 = $2,400
    """
    return high_three_base_pay * retirement_multiplier(years_of_service, system)


# =============================================================================
# Concurrent Receipt
# =============================================================================


@dataclass
class ConcurrentReceipt:
    """Outcome of a CRDP or CRSC check."""

    eligible: bool
    amount: Decimal
    description: str


def calculate_crdp(retirement_pay: Decimal, va_rating: int) -> ConcurrentReceipt:
    """Concurrent Retirement and Disability Pay.

    The phase-in ended in 2014, so an eligible retiree keeps full retired
    pay with no VA offset.
    """
    if va_rating < CRDP_MINIMUM_RATING:
        return ConcurrentReceipt(False, ZERO, "CRDP requires 50%+ VA rating")
    return ConcurrentReceipt(True, retirement_pay, "Full retirement pay with no VA offset")


def calculate_crsc(
    retirement_pay: Decimal,
    va_compensation: Decimal,
    combat_related_rating: int,
) -> ConcurrentReceipt:
    """Combat-Related Special Compensation: the lesser of VA pay and retired pay."""
    if combat_related_rating < CRSC_MINIMUM_RATING:
        return ConcurrentReceipt(False, ZERO, "CRSC requires combat-related disability")
    return ConcurrentReceipt(True, min(va_compensation, retirement_pay), "Tax-free CRSC payment")


# =============================================================================
# Survivor Benefit Plan
# =============================================================================


@dataclass
class SbpCost:
    coverage_rate: Decimal
    base_amount: Decimal
    monthly_premium: Decimal
    spouse_annuity: Decimal


def calculate_sbp_cost(retirement_pay: Decimal, coverage_rate: Decimal = Decimal("1.0")) -> SbpCost:
    """Premium and spouse annuity for an SBP election.

    The elected base amount is ``retirement_pay × coverage_rate``; the
    premium is 6.5% of it and the surviving spouse receives 55% of it.

    Raises:
        ValueError: If coverage_rate is not one of the offered options
    """
    if coverage_rate not in SBP_COVERAGE_OPTIONS:
        raise ValueError(
            f"SBP coverage must be one of {', '.join(str(o) for o in SBP_COVERAGE_OPTIONS)}, "
            f"got {coverage_rate}"
        )
    base = retirement_pay * coverage_rate
    return SbpCost(
        coverage_rate=coverage_rate,
        base_amount=_cents(base),
        monthly_premium=_cents(base * SBP_COST_RATE),
        spouse_annuity=_cents(base * SBP_SPOUSE_RATE),
    )


# =============================================================================
# Full Projection
# =============================================================================


class RetirementInput(BaseModel):
    """Inputs for a retirement projection.

    ``va_compensation`` overrides the table lookup when the actual award
    is known. ``combat_related_compensation`` is the VA amount attributable
    to combat-related conditions; it defaults to the whole award.
    """

    model_config = ConfigDict(frozen=True)

    system: RetirementSystem
    years_of_service: Decimal = Field(ge=0, le=50)
    high_three_base_pay: Decimal = Field(ge=0)
    va_rating: int = Field(default=0, ge=0, le=100)
    combat_related_rating: int = Field(default=0, ge=0, le=100)
    va_compensation: Decimal | None = Field(default=None, ge=0)
    combat_related_compensation: Decimal | None = Field(default=None, ge=0)
    sbp_coverage: Decimal | None = None


@dataclass
class RetirementResult:
    system: RetirementSystem
    multiplier: Decimal
    gross_monthly_retirement: Decimal
    va_compensation: Decimal
    va_waiver: Decimal
    crdp: ConcurrentReceipt
    crsc: ConcurrentReceipt
    concurrent_receipt_type: str | None
    concurrent_receipt_amount: Decimal
    sbp: SbpCost | None
    net_monthly_retirement: Decimal
    annual_retirement: Decimal
    taxable_amount: Decimal
    tax_free_amount: Decimal
    total_monthly_income: Decimal


def calculate_retirement(data: RetirementInput) -> RetirementResult:
    """Project monthly retired pay alongside VA compensation.

    Steps:
    1. Gross retired pay from the system multiplier
    2. VA waiver: min(VA compensation, gross) whenever a VA rating exists
    3. CRDP restores the whole waiver; CRSC restores up to the combat
       portion of VA pay. The larger restoration wins; on a tie CRSC is
       chosen because it is tax-free.
    4. SBP premium comes out of the taxable retired pay
    """
    gross = _cents(
        calculate_retirement_pay(data.years_of_service, data.high_three_base_pay, data.system)
    )
    multiplier = retirement_multiplier(data.years_of_service, data.system)

    if data.va_compensation is not None:
        va_comp = data.va_compensation
    else:
        va_comp = get_va_compensation(data.va_rating)

    waiver = min(va_comp, gross) if data.va_rating > 0 else ZERO

    crdp = calculate_crdp(waiver, data.va_rating)
    combat_comp = (
        data.combat_related_compensation
        if data.combat_related_compensation is not None
        else va_comp
    )
    crsc = calculate_crsc(waiver, combat_comp, data.combat_related_rating)

    receipt_type = None
    restored = ZERO
    if crsc.eligible and crsc.amount >= crdp.amount:
        receipt_type, restored = "crsc", crsc.amount
    elif crdp.eligible:
        receipt_type, restored = "crdp", crdp.amount

    sbp = calculate_sbp_cost(gross, data.sbp_coverage) if data.sbp_coverage is not None else None
    premium = sbp.monthly_premium if sbp else ZERO

    net = gross - waiver + restored - premium
    taxable = gross - waiver - premium + (restored if receipt_type == "crdp" else ZERO)
    tax_free = va_comp + (restored if receipt_type == "crsc" else ZERO)

    logger.debug(
        "retirement_calculated",
        system=data.system.value,
        gross=str(gross),
        waiver=str(waiver),
        concurrent_receipt=receipt_type,
    )

    return RetirementResult(
        system=data.system,
        multiplier=multiplier,
        gross_monthly_retirement=gross,
        va_compensation=va_comp,
        va_waiver=waiver,
        crdp=crdp,
        crsc=crsc,
        concurrent_receipt_type=receipt_type,
        concurrent_receipt_amount=restored,
        sbp=sbp,
        net_monthly_retirement=net,
        annual_retirement=net * 12,
        taxable_amount=taxable,
        tax_free_amount=tax_free,
        total_monthly_income=net + va_comp,
    )
