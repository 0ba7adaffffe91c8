"""Tests for retirement pay, concurrent receipt and SBP."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from milpay.benefits.retirement import (
    RetirementInput,
    RetirementSystem,
    calculate_crdp,
    calculate_crsc,
    calculate_retirement,
    calculate_retirement_pay,
    calculate_sbp_cost,
    retirement_multiplier,
)


def projection(**overrides) -> RetirementInput:
    values = {
        "system": RetirementSystem.LEGACY_HIGH3,
        "years_of_service": 20,
        "high_three_base_pay": Decimal("5000"),
    }
    values.update(overrides)
    return RetirementInput(**values)


class TestRetiredPay:
    """Tests for the multiplier and gross retired pay."""

    def test_brs(self) -> None:
        assert retirement_multiplier(20, RetirementSystem.BRS) == Decimal("0.40")
        assert calculate_retirement_pay(20, Decimal("6000"), "brs") == Decimal("2400")

    def test_legacy(self) -> None:
        assert calculate_retirement_pay(20, Decimal("6000"), RetirementSystem.LEGACY_HIGH3) == Decimal("3000")

    def test_multiplier_capped(self) -> None:
        assert retirement_multiplier(40, RetirementSystem.FINAL_PAY) == Decimal("0.75")
        assert retirement_multiplier(40, RetirementSystem.REDUX) == Decimal("0.75")


class TestConcurrentReceipt:
    """Tests for CRDP and CRSC eligibility."""

    def test_crdp_requires_fifty(self) -> None:
        result = calculate_crdp(Decimal("1000"), 40)
        assert not result.eligible
        assert result.description == "CRDP requires 50%+ VA rating"
        assert calculate_crdp(Decimal("1000"), 50).amount == Decimal("1000")

    def test_crsc_is_lesser_amount(self) -> None:
        assert not calculate_crsc(Decimal("1000"), Decimal("800"), 0).eligible
        result = calculate_crsc(Decimal("1000"), Decimal("800"), 10)
        assert result.eligible
        assert result.amount == Decimal("800")
        assert result.description == "Tax-free CRSC payment"


class TestSbp:
    """Tests for Survivor Benefit Plan costs."""

    def test_full_coverage(self) -> None:
        cost = calculate_sbp_cost(Decimal("2500"))
        assert cost.base_amount == Decimal("2500.00")
        assert cost.monthly_premium == Decimal("162.50")
        assert cost.spouse_annuity == Decimal("1375.00")

    def test_partial_coverage(self) -> None:
        cost = calculate_sbp_cost(Decimal("2500"), Decimal("0.5"))
        assert cost.monthly_premium == Decimal("81.25")

    def test_invalid_coverage(self) -> None:
        with pytest.raises(ValueError, match="SBP coverage must be one of"):
            calculate_sbp_cost(Decimal("2500"), Decimal("0.6"))


class TestCalculateRetirement:
    """Tests for the full projection."""

    def test_no_va_rating(self) -> None:
        result = calculate_retirement(projection())
        assert result.gross_monthly_retirement == Decimal("2500.00")
        assert result.va_waiver == Decimal("0")
        assert result.concurrent_receipt_type is None
        assert result.net_monthly_retirement == Decimal("2500.00")
        assert result.annual_retirement == Decimal("30000.00")
        assert result.total_monthly_income == Decimal("2500.00")

    def test_waiver_without_concurrent_receipt(self) -> None:
        """Below 50% and without combat disability, VA pay replaces retired pay."""
        result = calculate_retirement(projection(va_rating=40))
        assert result.va_compensation == Decimal("755.28")
        assert result.va_waiver == Decimal("755.28")
        assert result.net_monthly_retirement == Decimal("1744.72")
        assert result.taxable_amount == Decimal("1744.72")
        assert result.tax_free_amount == Decimal("755.28")
        assert result.total_monthly_income == Decimal("2500.00")

    def test_crdp_restores_waiver(self) -> None:
        result = calculate_retirement(projection(va_rating=70))
        assert result.concurrent_receipt_type == "crdp"
        assert result.concurrent_receipt_amount == Decimal("1716.28")
        assert result.net_monthly_retirement == Decimal("2500.00")
        assert result.taxable_amount == Decimal("2500.00")
        assert result.tax_free_amount == Decimal("1716.28")
        assert result.total_monthly_income == Decimal("4216.28")

    def test_crsc_wins_tie_and_is_tax_free(self) -> None:
        result = calculate_retirement(projection(va_rating=70, combat_related_rating=70))
        assert result.concurrent_receipt_type == "crsc"
        assert result.net_monthly_retirement == Decimal("2500.00")
        assert result.taxable_amount == Decimal("783.72")
        assert result.tax_free_amount == Decimal("3432.56")

    def test_larger_restoration_wins(self) -> None:
        result = calculate_retirement(
            projection(va_rating=70, combat_related_rating=30, combat_related_compensation=Decimal("500"))
        )
        assert result.crsc.amount == Decimal("500")
        assert result.concurrent_receipt_type == "crdp"

    def test_crsc_below_fifty_percent(self) -> None:
        result = calculate_retirement(projection(va_rating=40, combat_related_rating=40))
        assert result.concurrent_receipt_type == "crsc"
        assert result.net_monthly_retirement == Decimal("2500.00")
        assert result.taxable_amount == Decimal("1744.72")

    def test_sbp_premium_reduces_net(self) -> None:
        result = calculate_retirement(projection(sbp_coverage=Decimal("1.0")))
        assert result.sbp.monthly_premium == Decimal("162.50")
        assert result.net_monthly_retirement == Decimal("2337.50")
        assert result.taxable_amount == Decimal("2337.50")

    def test_va_compensation_override(self) -> None:
        result = calculate_retirement(projection(va_rating=70, va_compensation=Decimal("2000")))
        assert result.va_waiver == Decimal("2000")

    def test_input_bounds(self) -> None:
        with pytest.raises(ValidationError):
            projection(years_of_service=51)
        with pytest.raises(ValidationError):
            projection(va_rating=101)
