"""Repeated calls with identical inputs give identical results."""

from decimal import Decimal

from milpay.benefits.retirement import RetirementInput, RetirementSystem, calculate_retirement
from milpay.benefits.va import combine_ratings, combine_ratings_detail
from milpay.tax.estimator import TaxEstimateInput, estimate_taxes
from milpay.tax.year_config import FilingStatus

ASSESSMENT_IDENTITY = {"id", "assessed_at"}


class TestCalculators:
    """Tests for the pure calculators."""

    def test_estimate_taxes(self) -> None:
        estimate_input = TaxEstimateInput(
            monthly_base_pay=Decimal("4200"),
            monthly_bah=Decimal("2100"),
            monthly_bas=Decimal("460.25"),
            monthly_special_pays=Decimal("150"),
            filing_status=FilingStatus.MFJ,
            state_of_residence="VA",
            tax_year=2024,
        )
        assert estimate_taxes(estimate_input) == estimate_taxes(estimate_input)

    def test_combine_ratings(self) -> None:
        ratings = [50, 30, 20, 10]
        assert combine_ratings(ratings) == combine_ratings(ratings)
        assert combine_ratings_detail(ratings) == combine_ratings_detail(ratings)

    def test_calculate_retirement(self) -> None:
        data = RetirementInput(
            system=RetirementSystem.BRS,
            years_of_service=22,
            high_three_base_pay=Decimal("6100"),
            va_rating=70,
            combat_related_rating=40,
            sbp_coverage=Decimal("1.0"),
        )
        assert calculate_retirement(data) == calculate_retirement(data)


class TestRunAssessment:
    """Tests for the rule engine."""

    def test_same_answers_same_assessment(self, engine, ruleset, answers_factory) -> None:
        """Only the generated id and timestamp differ between runs."""
        answers = answers_factory(
            flight_has_rating=True,
            flight_status="current",
            jump_qualified=True,
            jump_type="basic",
            jump_assigned=True,
            jump_currency=True,
            hfp_deployed=True,
        )
        pay_types = ruleset.available_pay_types()

        first = engine.run_assessment(pay_types, answers)
        second = engine.run_assessment(pay_types, answers)

        assert first.id != second.id
        assert first.model_dump(exclude=ASSESSMENT_IDENTITY) == second.model_dump(
            exclude=ASSESSMENT_IDENTITY
        )
