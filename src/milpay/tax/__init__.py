"""Tax tables and the military pay tax estimator."""

from milpay.tax.estimator import TaxEstimateInput, TaxEstimateResult, estimate_taxes
from milpay.tax.year_config import (
    TAX_YEAR_2024,
    TAX_YEAR_2025,
    TAX_YEAR_CONFIGS,
    FilingStatus,
    TaxBracket,
    TaxYearConfig,
    get_tax_year_config,
    verify_brackets,
)

__all__ = [
    "FilingStatus",
    "TaxBracket",
    "TaxYearConfig",
    "TAX_YEAR_2024",
    "TAX_YEAR_2025",
    "TAX_YEAR_CONFIGS",
    "get_tax_year_config",
    "verify_brackets",
    "TaxEstimateInput",
    "TaxEstimateResult",
    "estimate_taxes",
]
