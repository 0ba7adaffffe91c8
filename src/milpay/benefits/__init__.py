"""VA compensation, retirement and separation calculators."""

from milpay.benefits.retirement import (
    RetirementInput,
    RetirementResult,
    RetirementSystem,
    calculate_crdp,
    calculate_crsc,
    calculate_retirement,
    calculate_retirement_pay,
    calculate_sbp_cost,
)
from milpay.benefits.separation import (
    calculate_income_comparison,
    calculate_leave_sellback,
    calculate_separation_pay,
    calculate_tax_equivalent_salary,
    calculate_terminal_leave,
    get_checklist_by_timeline,
)
from milpay.benefits.va import (
    VA_COMPENSATION_RATES_2024,
    combine_ratings,
    combine_ratings_detail,
    combined_rating_exact,
    get_va_compensation,
)

__all__ = [
    "VA_COMPENSATION_RATES_2024",
    "combine_ratings",
    "combine_ratings_detail",
    "combined_rating_exact",
    "get_va_compensation",
    "RetirementSystem",
    "RetirementInput",
    "RetirementResult",
    "calculate_retirement",
    "calculate_retirement_pay",
    "calculate_crdp",
    "calculate_crsc",
    "calculate_sbp_cost",
    "calculate_separation_pay",
    "calculate_leave_sellback",
    "calculate_terminal_leave",
    "calculate_tax_equivalent_salary",
    "calculate_income_comparison",
    "get_checklist_by_timeline",
]
