"""Display lookups for eligibility results.

Plain status-to-label/color/icon tables so a UI can render purely from
engine output.
"""

from decimal import Decimal

from milpay.eligibility.models import EligibilityStatus, PayRange, PayTypeEligibilityResult

STATUS_LABELS: dict[EligibilityStatus, str] = {
    EligibilityStatus.ELIGIBLE: "Eligible",
    EligibilityStatus.POTENTIALLY_ELIGIBLE: "Potentially Eligible",
    EligibilityStatus.NOT_ELIGIBLE: "Not Eligible",
    EligibilityStatus.INCOMPLETE: "Incomplete",
}

STATUS_COLORS: dict[EligibilityStatus, str] = {
    EligibilityStatus.ELIGIBLE: "#22c55e",
    EligibilityStatus.POTENTIALLY_ELIGIBLE: "#f59e0b",
    EligibilityStatus.NOT_ELIGIBLE: "#ef4444",
    EligibilityStatus.INCOMPLETE: "#6b7280",
}

STATUS_ICONS: dict[EligibilityStatus, str] = {
    EligibilityStatus.ELIGIBLE: "checkmark-circle",
    EligibilityStatus.POTENTIALLY_ELIGIBLE: "help-circle",
    EligibilityStatus.NOT_ELIGIBLE: "close-circle",
    EligibilityStatus.INCOMPLETE: "ellipse-outline",
}


def format_eligibility_status(status: EligibilityStatus | str) -> str:
    """Human label for a status."""
    return STATUS_LABELS[EligibilityStatus(status)]


def get_status_color(status: EligibilityStatus | str) -> str:
    """Hex color for a status."""
    return STATUS_COLORS[EligibilityStatus(status)]


def get_status_icon(status: EligibilityStatus | str) -> str:
    """Icon name for a status."""
    return STATUS_ICONS[EligibilityStatus(status)]


def calculate_pay_range_summary(results: list[PayTypeEligibilityResult]) -> PayRange:
    """Monthly min/max over eligible and potentially eligible pay types.

    A declared monthly amount counts toward both ends; otherwise the pay
    type's published range is used.
    """
    low = Decimal("0")
    high = Decimal("0")
    for result in results:
        if result.status not in (EligibilityStatus.ELIGIBLE, EligibilityStatus.POTENTIALLY_ELIGIBLE):
            continue
        if result.monthly_amount is not None:
            low += result.monthly_amount
            high += result.monthly_amount
        elif result.amount_range is not None:
            low += result.amount_range.min
            high += result.amount_range.max
    return PayRange(min=low, max=high)
