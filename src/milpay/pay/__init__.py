"""Military pay lookup tables and estimator."""

from milpay.pay.calculator import (
    IncomeSource,
    PayEstimate,
    calculate_at_pay,
    calculate_drill_pay,
    calculate_military_pay,
    calculate_total_monthly_income,
)
from milpay.pay.tables import (
    UnknownPayGrade,
    find_mha_by_zip,
    get_bah_rate,
    get_base_pay,
    get_bas_rate,
)

__all__ = [
    "get_base_pay",
    "get_bas_rate",
    "get_bah_rate",
    "find_mha_by_zip",
    "UnknownPayGrade",
    "PayEstimate",
    "IncomeSource",
    "calculate_military_pay",
    "calculate_drill_pay",
    "calculate_at_pay",
    "calculate_total_monthly_income",
]
