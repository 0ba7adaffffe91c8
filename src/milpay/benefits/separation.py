"""Separation planning: separation pay, leave, income comparison, checklist.

Figures here are planning estimates. Separation pay uses a flat 25%
withholding assumption and the income comparison grosses up tax-free
allowances at a flat 22% rate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict, Field

CENTS = Decimal("0.01")
ZERO = Decimal("0")

SEPARATION_MINIMUM_YEARS = 6
FULL_SEPARATION_RATE = Decimal("0.10")
HALF_SEPARATION_RATE = Decimal("0.05")
SEPARATION_WITHHOLDING_RATE = Decimal("0.25")

MAX_SELLBACK_DAYS = 60
DAYS_PER_PAY_MONTH = Decimal("30")

DEFAULT_GROSS_UP_RATE = Decimal("0.22")
CIVILIAN_BENEFITS_RATE = Decimal("0.30")
RECOMMENDED_SALARY_BUFFER = Decimal("1.1")


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


# =============================================================================
# Separation Pay
# =============================================================================


@dataclass
class SeparationPay:
    eligible: bool
    gross_amount: Decimal
    net_estimate: Decimal


def calculate_separation_pay(
    years_of_service: Decimal | int,
    monthly_base_pay: Decimal,
    full_separation: bool = True,
) -> SeparationPay:
    """Involuntary separation pay.

    Requires 6+ years. Full pay is 10% of annual base pay per year of
    service, half pay 5%.

    Example:
        8 years, $4,000/mo, full -> 48,000 × 0.10 × 8 = $38,400 gross,
        $28,800 after the 25% withholding estimate
    """
    if years_of_service < SEPARATION_MINIMUM_YEARS:
        return SeparationPay(eligible=False, gross_amount=ZERO, net_estimate=ZERO)

    rate = FULL_SEPARATION_RATE if full_separation else HALF_SEPARATION_RATE
    gross = monthly_base_pay * 12 * rate * Decimal(years_of_service)
    return SeparationPay(
        eligible=True,
        gross_amount=_cents(gross),
        net_estimate=_cents(gross * (1 - SEPARATION_WITHHOLDING_RATE)),
    )


# =============================================================================
# Leave
# =============================================================================


@dataclass
class LeaveSellback:
    days_sold: Decimal
    sellback_value: Decimal
    terminal_leave_days: Decimal


def calculate_leave_sellback(
    leave_balance: Decimal | int,
    daily_base_pay: Decimal,
    days_to_sell: Decimal | int,
) -> LeaveSellback:
    """Sell up to 60 days of leave; whatever is left becomes terminal leave."""
    balance = Decimal(leave_balance)
    sold = max(min(Decimal(days_to_sell), Decimal(MAX_SELLBACK_DAYS), balance), ZERO)
    return LeaveSellback(
        days_sold=sold,
        sellback_value=_cents(sold * daily_base_pay),
        terminal_leave_days=balance - sold,
    )


@dataclass
class TerminalLeavePlan:
    leave_balance: Decimal
    terminal_leave_days: int
    terminal_leave_start: date
    last_day_of_work: date
    official_separation_date: date
    sellback_days: Decimal
    sellback_value: Decimal


def calculate_terminal_leave(
    ets_date: date,
    leave_balance: Decimal | int,
    monthly_base_pay: Decimal,
    sell_days: Decimal | int = 0,
) -> TerminalLeavePlan:
    """Dates for terminal leave ending on the ETS date.

    Leave is valued at base pay / 30 per day. Partial leave days are not
    taken as terminal leave.
    """
    sellback = calculate_leave_sellback(
        leave_balance, monthly_base_pay / DAYS_PER_PAY_MONTH, sell_days
    )
    terminal_days = int(sellback.terminal_leave_days)
    start = ets_date - timedelta(days=terminal_days)
    return TerminalLeavePlan(
        leave_balance=Decimal(leave_balance),
        terminal_leave_days=terminal_days,
        terminal_leave_start=start,
        last_day_of_work=start - timedelta(days=1),
        official_separation_date=ets_date,
        sellback_days=sellback.days_sold,
        sellback_value=sellback.sellback_value,
    )


# =============================================================================
# Income Comparison
# =============================================================================


def calculate_tax_equivalent_salary(
    base_pay: Decimal,
    bah: Decimal,
    bas: Decimal,
    tax_rate: Decimal = DEFAULT_GROSS_UP_RATE,
) -> Decimal:
    """Taxable salary equivalent to base pay plus tax-free allowances."""
    return base_pay + (bah + bas) / (1 - tax_rate)


@dataclass
class IncomeComparison:
    """Annual military vs civilian figures. Monthly inputs are annualized."""

    military_base_pay: Decimal
    military_allowances: Decimal
    military_total: Decimal
    military_taxable_equivalent: Decimal
    civilian_salary: Decimal
    expected_benefits_value: Decimal
    civilian_total: Decimal
    retirement_pay: Decimal
    va_compensation: Decimal
    post_separation_total: Decimal
    income_difference: Decimal
    break_even_salary: Decimal
    recommended_minimum: Decimal


def calculate_income_comparison(
    civilian_salary: Decimal,
    monthly_base_pay: Decimal,
    monthly_allowances: Decimal,
    monthly_retirement_pay: Decimal = ZERO,
    monthly_va_compensation: Decimal = ZERO,
    tax_rate: Decimal = DEFAULT_GROSS_UP_RATE,
) -> IncomeComparison:
    """Compare a civilian offer to current military compensation.

    Civilian benefits are valued at 30% of salary. The recommended
    minimum salary is break-even plus 10%.
    """
    taxable_equivalent = _cents(
        (monthly_base_pay + monthly_allowances / (1 - tax_rate)) * 12
    )
    benefits = _cents(civilian_salary * CIVILIAN_BENEFITS_RATE)
    retirement = monthly_retirement_pay * 12
    va = monthly_va_compensation * 12
    return IncomeComparison(
        military_base_pay=monthly_base_pay * 12,
        military_allowances=monthly_allowances * 12,
        military_total=(monthly_base_pay + monthly_allowances) * 12,
        military_taxable_equivalent=taxable_equivalent,
        civilian_salary=civilian_salary,
        expected_benefits_value=benefits,
        civilian_total=civilian_salary + benefits,
        retirement_pay=retirement,
        va_compensation=va,
        post_separation_total=retirement + va,
        income_difference=civilian_salary - taxable_equivalent,
        break_even_salary=taxable_equivalent,
        recommended_minimum=_cents(taxable_equivalent * RECOMMENDED_SALARY_BUFFER),
    )


class SeparationInput(BaseModel):
    """Validated inputs for a separation estimate."""

    model_config = ConfigDict(frozen=True)

    years_of_service: Decimal = Field(ge=0, le=50)
    monthly_base_pay: Decimal = Field(ge=0)
    full_separation: bool = True
    ets_date: date
    leave_balance: Decimal = Field(default=ZERO, ge=0, le=120)
    sell_days: Decimal = Field(default=ZERO, ge=0)


@dataclass
class SeparationEstimate:
    separation_pay: SeparationPay
    terminal_leave: TerminalLeavePlan


def estimate_separation(data: SeparationInput) -> SeparationEstimate:
    return SeparationEstimate(
        separation_pay=calculate_separation_pay(
            data.years_of_service, data.monthly_base_pay, data.full_separation
        ),
        terminal_leave=calculate_terminal_leave(
            data.ets_date, data.leave_balance, data.monthly_base_pay, data.sell_days
        ),
    )


# =============================================================================
# Transition Checklist
# =============================================================================


@dataclass(frozen=True)
class ChecklistItem:
    id: str
    title: str
    description: str
    priority: str
    category: str


@dataclass(frozen=True)
class ChecklistCategory:
    id: str
    name: str
    description: str
    timeline: str
    items: tuple[ChecklistItem, ...] = field(default_factory=tuple)


def _items(category: str, *rows: tuple[str, str, str, str]) -> tuple[ChecklistItem, ...]:
    return tuple(ChecklistItem(id, title, description, priority, category) for id, title, description, priority in rows)


TRANSITION_CHECKLIST: tuple[ChecklistCategory, ...] = (
    ChecklistCategory(
        id="12_months",
        name="12 Months Before",
        description="Early planning and preparation",
        timeline="12 months before ETS",
        items=_items(
            "12_months",
            ("tap_registration", "Register for TAP/TAPS",
             "Transition Assistance Program is mandatory. Register early for best dates.", "critical"),
            ("retirement_counseling", "Schedule retirement/separation counseling",
             "Meet with your installation's transition office.", "high"),
            ("review_benefits", "Review all benefits eligibility",
             "Understand what you'll lose and gain after separation.", "high"),
            ("start_resume", "Start building civilian resume",
             "Translate military experience to civilian terms.", "medium"),
            ("education_plan", "Plan for education/certifications",
             "Research GI Bill, TA, and credential programs.", "medium"),
        ),
    ),
    ChecklistCategory(
        id="6_months",
        name="6 Months Before",
        description="Active preparation phase",
        timeline="6 months before ETS",
        items=_items(
            "6_months",
            ("va_claim", "File VA disability claim (BDD)",
             "Benefits Delivery at Discharge - file 180-90 days before separation.", "critical"),
            ("medical_records", "Gather medical records",
             "Get copies of all service treatment records for VA claim.", "critical"),
            ("job_search", "Begin active job search",
             "Apply to jobs, network, attend job fairs.", "high"),
            ("tsp_decision", "Decide TSP withdrawal strategy",
             "Leave in place, rollover, or withdraw.", "high"),
            ("housing_plan", "Plan post-separation housing",
             "Where will you live? Start researching.", "high"),
            ("sgli_convert", "Research SGLI conversion options",
             "Convert to VGLI or get civilian life insurance.", "medium"),
        ),
    ),
    ChecklistCategory(
        id="3_months",
        name="3 Months Before",
        description="Final preparations",
        timeline="3 months before ETS",
        items=_items(
            "3_months",
            ("terminal_leave", "Submit terminal leave request",
             "Calculate leave balance and plan terminal leave.", "critical"),
            ("final_physical", "Complete separation physical",
             "Document all medical conditions for VA.", "critical"),
            ("clear_installation", "Begin clearing installation",
             "Start clearing finance, housing, unit, etc.", "high"),
            ("healthcare_transition", "Plan healthcare transition",
             "Enroll in VA healthcare or secure civilian coverage.", "high"),
            ("update_documents", "Update legal documents",
             "Will, POA, beneficiaries on all accounts.", "medium"),
        ),
    ),
    ChecklistCategory(
        id="1_month",
        name="1 Month Before",
        description="Final actions",
        timeline="1 month before ETS",
        items=_items(
            "1_month",
            ("dd214_review", "Review draft DD-214",
             "Ensure all information is correct before signing.", "critical"),
            ("final_out", "Complete final out-processing",
             "All clearing complete, turn in gear.", "critical"),
            ("id_card", "Get new ID card (if applicable)",
             "Retiree or dependent ID card.", "high"),
            ("direct_deposit", "Update direct deposit",
             "Ensure retirement/VA payments go to correct account.", "high"),
            ("copy_records", "Get copies of all records",
             "Personnel, medical, training records.", "medium"),
        ),
    ),
    ChecklistCategory(
        id="post_separation",
        name="After Separation",
        description="Post-separation tasks",
        timeline="After ETS",
        items=_items(
            "post_separation",
            ("va_healthcare_enroll", "Enroll in VA healthcare",
             "Register at local VA facility.", "high"),
            ("unemployment", "File for unemployment (if needed)",
             "UCX - Unemployment Compensation for Ex-servicemembers.", "medium"),
            ("gi_bill_apply", "Apply for GI Bill (if using)",
             "Apply for COE and submit to school.", "medium"),
            ("voter_registration", "Update voter registration",
             "Register at new address.", "low"),
            ("drivers_license", "Update driver's license",
             "Get civilian license in your state.", "low"),
        ),
    ),
)

# Months-before-ETS threshold -> categories visible from that point on
_TIMELINE_WINDOWS: tuple[tuple[int, tuple[str, ...]], ...] = (
    (12, ("12_months",)),
    (6, ("12_months", "6_months")),
    (3, ("12_months", "6_months", "3_months")),
    (1, ("12_months", "6_months", "3_months", "1_month")),
)


def get_checklist_by_timeline(months_before_ets: Decimal | int) -> list[ChecklistCategory]:
    """Checklist categories relevant this far out from ETS.

    Past ETS (under one month) every category is returned, including
    post-separation tasks.
    """
    for threshold, category_ids in _TIMELINE_WINDOWS:
        if months_before_ets >= threshold:
            return [c for c in TRANSITION_CHECKLIST if c.id in category_ids]
    return list(TRANSITION_CHECKLIST)
