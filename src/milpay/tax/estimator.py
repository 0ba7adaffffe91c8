"""Tax estimation for military pay.

This module provides pure functions for estimating taxes on military pay:
- Federal income tax using precomputed progressive brackets
- State income tax using flat-rate approximations
- FICA (Social Security capped at the wage base, Medicare uncapped)
- Combat zone tax exclusion (CZTE)
- Withholding estimates and LES withholding comparison

Allowances (BAH, BAS) and combat-zone pay are never federally taxable.
Military pay is issued semimonthly, so per-paycheck figures divide the
annual amount by 24.

All monetary values use Decimal for precision.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

import structlog
from pydantic import BaseModel, ConfigDict, Field

from milpay.core.config import settings
from milpay.tax.states import get_state_info, get_state_tax_rate
from milpay.tax.year_config import (
    FilingStatus,
    TaxBracket,
    TaxYearConfig,
    resolve_tax_year_config,
)

logger = structlog.get_logger()

CENTS = Decimal("0.01")
RATE_PLACES = Decimal("0.0001")
MONTHS_PER_YEAR = Decimal("12")
PAYCHECKS_PER_YEAR = Decimal("24")

# Officer CZTE cap: highest enlisted basic pay plus hostile fire / imminent danger pay
E9_MAX_MONTHLY_PAY = Decimal("9148.20")
HOSTILE_FIRE_PAY = Decimal("225")
OFFICER_CZTE_CAP = E9_MAX_MONTHLY_PAY + HOSTILE_FIRE_PAY

ZERO = Decimal("0")


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


# =============================================================================
# Data Structures
# =============================================================================


class TaxEstimateInput(BaseModel):
    """Monthly pay figures for a tax estimate.

    Negative amounts are rejected here so the calculators below never
    need to guard against them.
    """

    model_config = ConfigDict(frozen=True)

    monthly_base_pay: Decimal = Field(ge=0)
    monthly_special_pays: Decimal = Field(default=ZERO, ge=0)
    monthly_bonuses: Decimal = Field(default=ZERO, ge=0)
    other_taxable_income: Decimal = Field(default=ZERO, ge=0)
    monthly_bah: Decimal = Field(default=ZERO, ge=0)
    monthly_bas: Decimal = Field(default=ZERO, ge=0)
    monthly_combat_pay: Decimal = Field(default=ZERO, ge=0)
    other_tax_free_income: Decimal = Field(default=ZERO, ge=0)
    filing_status: FilingStatus = FilingStatus.SINGLE
    state_of_residence: str = Field(min_length=2, max_length=2)
    in_combat_zone: bool = False
    tax_year: int | None = None


@dataclass
class FederalTaxResult:
    """Federal income tax on annual taxable income.

    Attributes:
        tax: Annual federal tax, rounded to cents.
        adjusted_income: Income after the standard deduction (never negative).
        standard_deduction: Deduction applied for the filing status.
        marginal_rate: Rate of the bracket holding the adjusted income.
        effective_rate: Tax divided by pre-deduction income.
    """

    tax: Decimal
    adjusted_income: Decimal
    standard_deduction: Decimal
    marginal_rate: Decimal
    effective_rate: Decimal


@dataclass
class StateTaxResult:
    """Flat-rate state tax approximation."""

    state: str
    tax: Decimal
    rate: Decimal
    has_no_tax: bool
    known_state: bool = True


@dataclass
class FicaResult:
    """Payroll taxes. Each component is rounded to cents."""

    social_security: Decimal
    medicare: Decimal
    additional_medicare: Decimal
    total: Decimal


@dataclass
class TaxBreakdownItem:
    """One display row: annual, monthly and per-paycheck amounts."""

    category: str
    annual: Decimal
    monthly: Decimal
    per_paycheck: Decimal


@dataclass
class TaxEstimateResult:
    """Aggregated annual tax estimate for one member.

    Attributes:
        tax_year: Year of the tables actually used.
        gross_annual_income: Taxable plus tax-free income.
        taxable_income: Annualized taxable income before any exclusion.
        federal_taxable_income: Taxable income after the combat zone exclusion.
        tax_free_income: Allowances, combat pay and other tax-free income.
        federal: Federal income tax detail.
        state: State income tax detail.
        fica: Payroll tax detail.
        total_tax: Federal plus state plus FICA.
        effective_total_rate: Total tax over gross income.
        take_home_annual: Gross income minus total tax.
        take_home_monthly: Annual take-home over 12.
        take_home_per_paycheck: Annual take-home over 24.
        breakdown: Display rows per tax category.
    """

    tax_year: int
    gross_annual_income: Decimal
    taxable_income: Decimal
    federal_taxable_income: Decimal
    tax_free_income: Decimal
    federal: FederalTaxResult
    state: StateTaxResult
    fica: FicaResult
    total_tax: Decimal
    effective_total_rate: Decimal
    take_home_annual: Decimal
    take_home_monthly: Decimal
    take_home_per_paycheck: Decimal
    breakdown: list[TaxBreakdownItem] = field(default_factory=list)


@dataclass
class WithholdingEstimate:
    """Monthly withholding for one pay period basis."""

    federal: Decimal
    state: Decimal
    social_security: Decimal
    medicare: Decimal
    total: Decimal


@dataclass
class CzteBenefit:
    """Combat zone tax exclusion outcome for one month."""

    excluded_amount: Decimal
    taxable_amount: Decimal
    estimated_tax_savings: Decimal
    notes: list[str] = field(default_factory=list)


@dataclass
class WithholdingComparison:
    """Actual LES withholding versus the estimate (positive = over-withheld)."""

    federal_difference: Decimal
    state_difference: Decimal
    fica_difference: Decimal
    is_federal_over: bool
    is_federal_under: bool
    analysis: list[str] = field(default_factory=list)


# =============================================================================
# Federal Income Tax
# =============================================================================


def find_bracket(adjusted_income: Decimal, brackets: tuple[TaxBracket, ...]) -> TaxBracket:
    """Return the bracket whose (min, max] range holds the income.

    Income above the last bracket's min always lands in the top bracket.
    """
    for bracket in brackets:
        if bracket.contains(adjusted_income):
            return bracket
    return brackets[-1] if adjusted_income > brackets[-1].min else brackets[0]


def calculate_bracket_tax(adjusted_income: Decimal, brackets: tuple[TaxBracket, ...]) -> Decimal:
    """Tax on adjusted income: base_tax plus the marginal slice.

    Example:
        >>> from milpay.tax.year_config import TAX_YEAR_2024, FilingStatus
        >>> calculate_bracket_tax(Decimal("35400"), TAX_YEAR_2024.brackets_for(FilingStatus.SINGLE))
        Decimal('4016.00')
    """
    if adjusted_income <= 0:
        return ZERO
    bracket = find_bracket(adjusted_income, brackets)
    return bracket.base_tax + (adjusted_income - bracket.min) * bracket.rate


def calculate_federal_tax(
    annual_taxable_income: Decimal,
    filing_status: FilingStatus,
    config: TaxYearConfig,
) -> FederalTaxResult:
    """Calculate federal income tax on annualized taxable income.

    The standard deduction is subtracted first; adjusted income never goes
    below zero. Effective rate uses the pre-deduction income as denominator.

    Example:
        >>> from milpay.tax.year_config import TAX_YEAR_2024
        >>> calculate_federal_tax(Decimal("50000"), FilingStatus.SINGLE, TAX_YEAR_2024).tax
        Decimal('4016.00')
    """
    deduction = config.standard_deduction(filing_status)
    adjusted = max(ZERO, annual_taxable_income - deduction)
    brackets = config.brackets_for(filing_status)

    if adjusted == 0:
        return FederalTaxResult(
            tax=ZERO,
            adjusted_income=ZERO,
            standard_deduction=deduction,
            marginal_rate=brackets[0].rate,
            effective_rate=ZERO,
        )

    bracket = find_bracket(adjusted, brackets)
    tax = _cents(bracket.base_tax + (adjusted - bracket.min) * bracket.rate)
    effective = (
        (tax / annual_taxable_income).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)
        if annual_taxable_income > 0
        else ZERO
    )
    return FederalTaxResult(
        tax=tax,
        adjusted_income=adjusted,
        standard_deduction=deduction,
        marginal_rate=bracket.rate,
        effective_rate=effective,
    )


# =============================================================================
# State and Payroll Taxes
# =============================================================================


def calculate_state_tax(adjusted_income: Decimal, state_abbr: str) -> StateTaxResult:
    """Flat-rate state tax on the same adjusted base used for federal.

    No-income-tax states return zero immediately. Unknown abbreviations
    are taxed at zero and flagged ``known_state=False``.
    """
    state = state_abbr.strip().upper()
    info = get_state_info(state)
    if info is None:
        logger.warning("unknown_state_abbreviation", state=state)
        return StateTaxResult(state=state, tax=ZERO, rate=ZERO, has_no_tax=False, known_state=False)
    if not info.has_income_tax:
        return StateTaxResult(state=state, tax=ZERO, rate=ZERO, has_no_tax=True)

    rate = get_state_tax_rate(state)
    return StateTaxResult(
        state=state,
        tax=_cents(max(ZERO, adjusted_income) * rate),
        rate=rate,
        has_no_tax=False,
    )


def calculate_fica(
    annual_wages: Decimal,
    filing_status: FilingStatus,
    config: TaxYearConfig,
) -> FicaResult:
    """Social Security (capped) and Medicare (uncapped plus surtax).

    Each call is a stateless annual projection: the wage base cap applies
    to this call's wages only.
    """
    wages = max(ZERO, annual_wages)
    social_security = _cents(min(wages, config.ss_wage_base) * config.ss_rate_employee)
    medicare = _cents(wages * config.medicare_rate)
    threshold = config.additional_medicare_threshold(filing_status)
    additional = _cents(max(ZERO, wages - threshold) * config.additional_medicare_rate)
    return FicaResult(
        social_security=social_security,
        medicare=medicare,
        additional_medicare=additional,
        total=social_security + medicare + additional,
    )


# =============================================================================
# Full Estimate
# =============================================================================


def _breakdown_row(category: str, annual: Decimal) -> TaxBreakdownItem:
    return TaxBreakdownItem(
        category=category,
        annual=annual,
        monthly=_cents(annual / MONTHS_PER_YEAR),
        per_paycheck=_cents(annual / PAYCHECKS_PER_YEAR),
    )


def estimate_taxes(estimate_input: TaxEstimateInput) -> TaxEstimateResult:
    """Estimate annual federal, state and payroll taxes for military pay.

    Combat zone: monthly combat pay (x12) is removed from the federal and
    state taxable base, but FICA is always computed on the unreduced wages.
    """
    year = estimate_input.tax_year or settings.default_tax_year
    config = resolve_tax_year_config(year)

    annual_taxable = (
        estimate_input.monthly_base_pay
        + estimate_input.monthly_special_pays
        + estimate_input.monthly_bonuses
        + estimate_input.other_taxable_income
    ) * MONTHS_PER_YEAR
    annual_tax_free = (
        estimate_input.monthly_bah
        + estimate_input.monthly_bas
        + estimate_input.monthly_combat_pay
        + estimate_input.other_tax_free_income
    ) * MONTHS_PER_YEAR

    federal_taxable = annual_taxable
    if estimate_input.in_combat_zone:
        federal_taxable = max(ZERO, annual_taxable - estimate_input.monthly_combat_pay * MONTHS_PER_YEAR)

    federal = calculate_federal_tax(federal_taxable, estimate_input.filing_status, config)
    state = calculate_state_tax(federal.adjusted_income, estimate_input.state_of_residence)
    fica = calculate_fica(annual_taxable, estimate_input.filing_status, config)

    gross = annual_taxable + annual_tax_free
    total_tax = federal.tax + state.tax + fica.total
    take_home = gross - total_tax
    effective_total = (
        (total_tax / gross).quantize(RATE_PLACES, rounding=ROUND_HALF_UP) if gross > 0 else ZERO
    )

    logger.debug(
        "tax_estimate_computed",
        tax_year=config.tax_year,
        filing_status=estimate_input.filing_status.value,
        state=state.state,
        total_tax=total_tax,
    )

    return TaxEstimateResult(
        tax_year=config.tax_year,
        gross_annual_income=gross,
        taxable_income=annual_taxable,
        federal_taxable_income=federal_taxable,
        tax_free_income=annual_tax_free,
        federal=federal,
        state=state,
        fica=fica,
        total_tax=total_tax,
        effective_total_rate=effective_total,
        take_home_annual=take_home,
        take_home_monthly=_cents(take_home / MONTHS_PER_YEAR),
        take_home_per_paycheck=_cents(take_home / PAYCHECKS_PER_YEAR),
        breakdown=[
            _breakdown_row("Federal Income Tax", federal.tax),
            _breakdown_row("State Income Tax", state.tax),
            _breakdown_row("Social Security (FICA)", fica.social_security),
            _breakdown_row("Medicare (FICA)", fica.medicare + fica.additional_medicare),
        ],
    )


# =============================================================================
# Withholding
# =============================================================================


def estimate_monthly_withholding(
    monthly_taxable: Decimal,
    filing_status: FilingStatus,
    state_abbr: str,
    additional_federal: Decimal = ZERO,
    additional_state: Decimal = ZERO,
    tax_year: int | None = None,
) -> WithholdingEstimate:
    """Approximate monthly withholding by annualizing one month of taxable pay."""
    config = resolve_tax_year_config(tax_year or settings.default_tax_year)
    annual = monthly_taxable * MONTHS_PER_YEAR

    federal = calculate_federal_tax(annual, filing_status, config)
    state = calculate_state_tax(federal.adjusted_income, state_abbr)
    fica = calculate_fica(annual, filing_status, config)

    federal_monthly = _cents(federal.tax / MONTHS_PER_YEAR) + additional_federal
    state_monthly = _cents(state.tax / MONTHS_PER_YEAR) + additional_state
    ss_monthly = _cents(fica.social_security / MONTHS_PER_YEAR)
    medicare_monthly = _cents((fica.medicare + fica.additional_medicare) / MONTHS_PER_YEAR)

    return WithholdingEstimate(
        federal=federal_monthly,
        state=state_monthly,
        social_security=ss_monthly,
        medicare=medicare_monthly,
        total=federal_monthly + state_monthly + ss_monthly + medicare_monthly,
    )


def estimate_paycheck_withholding(
    monthly_taxable: Decimal,
    filing_status: FilingStatus,
    state_abbr: str,
    additional_federal: Decimal = ZERO,
    additional_state: Decimal = ZERO,
    tax_year: int | None = None,
) -> WithholdingEstimate:
    """Semimonthly paycheck withholding: half of the monthly estimate."""
    monthly = estimate_monthly_withholding(
        monthly_taxable,
        filing_status,
        state_abbr,
        additional_federal,
        additional_state,
        tax_year,
    )
    return WithholdingEstimate(
        federal=_cents(monthly.federal / 2),
        state=_cents(monthly.state / 2),
        social_security=_cents(monthly.social_security / 2),
        medicare=_cents(monthly.medicare / 2),
        total=_cents(monthly.total / 2),
    )


def calculate_czte_benefit(
    monthly_taxable_pay: Decimal,
    is_officer: bool,
    marginal_rate: Decimal,
) -> CzteBenefit:
    """Combat zone exclusion for one month of pay.

    Enlisted members exclude all pay earned in the combat zone. Officers
    exclude up to the highest enlisted pay plus hostile fire pay.
    """
    notes: list[str] = []
    if is_officer:
        excluded = min(monthly_taxable_pay, OFFICER_CZTE_CAP)
        notes.append(f"Officers: Exclusion capped at ${OFFICER_CZTE_CAP:,.2f}/month")
        if monthly_taxable_pay > OFFICER_CZTE_CAP:
            notes.append("Some of your pay exceeds the exclusion cap")
    else:
        excluded = monthly_taxable_pay
        notes.append("Enlisted: All pay earned in combat zone is tax-free")

    notes.append("CZTE applies for any portion of a month in the combat zone")
    notes.append("Reenlistment bonuses in combat zone are 100% tax-free")

    return CzteBenefit(
        excluded_amount=excluded,
        taxable_amount=monthly_taxable_pay - excluded,
        estimated_tax_savings=_cents(excluded * marginal_rate),
        notes=notes,
    )


def calculate_ytd_tax(estimate: TaxEstimateResult, months_elapsed: int) -> dict[str, Decimal]:
    """Pro-rate an annual estimate to a year-to-date figure."""
    months = Decimal(max(0, min(12, months_elapsed)))
    fraction = months / MONTHS_PER_YEAR
    return {
        "federal": _cents(estimate.federal.tax * fraction),
        "state": _cents(estimate.state.tax * fraction),
        "social_security": _cents(estimate.fica.social_security * fraction),
        "medicare": _cents((estimate.fica.medicare + estimate.fica.additional_medicare) * fraction),
        "total": _cents(estimate.total_tax * fraction),
    }


# Differences below these monthly amounts are noise
FEDERAL_DIFFERENCE_THRESHOLD = Decimal("50")
STATE_DIFFERENCE_THRESHOLD = Decimal("25")
SOCIAL_SECURITY_DIFFERENCE_THRESHOLD = Decimal("10")
MEDICARE_DIFFERENCE_THRESHOLD = Decimal("5")


def compare_withholding_to_estimate(
    actual: WithholdingEstimate,
    estimated: WithholdingEstimate,
    state_abbr: str,
) -> WithholdingComparison:
    """Compare LES withholding to the estimate and explain differences."""
    federal_diff = actual.federal - estimated.federal
    state_diff = actual.state - estimated.state
    ss_diff = actual.social_security - estimated.social_security
    medicare_diff = actual.medicare - estimated.medicare

    analysis: list[str] = []
    is_over = federal_diff > FEDERAL_DIFFERENCE_THRESHOLD
    is_under = federal_diff < -FEDERAL_DIFFERENCE_THRESHOLD
    if is_over:
        analysis.append("Federal withholding is higher than expected. Check your W-4 allowances.")
    elif is_under:
        analysis.append("Federal withholding is lower than expected. You may owe at tax time.")

    info = get_state_info(state_abbr)
    if info is not None and not info.has_income_tax and actual.state > STATE_DIFFERENCE_THRESHOLD:
        analysis.append(
            "You have state tax withheld but your SLR has no income tax. Update DD Form 2058."
        )

    if abs(ss_diff) > SOCIAL_SECURITY_DIFFERENCE_THRESHOLD or abs(medicare_diff) > MEDICARE_DIFFERENCE_THRESHOLD:
        analysis.append("FICA amounts differ from estimate. This could be due to timing or YTD caps.")

    if not analysis:
        analysis.append("Withholding amounts are within expected range.")

    return WithholdingComparison(
        federal_difference=federal_diff,
        state_difference=state_diff,
        fica_difference=ss_diff + medicare_diff,
        is_federal_over=is_over,
        is_federal_under=is_under,
        analysis=analysis,
    )
