"""Tests for pay lookup tables."""

from decimal import Decimal

import pytest

from milpay.pay.tables import (
    UnknownPayGrade,
    find_mha_by_zip,
    get_bah_rate,
    get_base_pay,
    get_bas_rate,
    get_flight_pay_rate,
    get_housing_area,
    grade_number,
    normalize_pay_grade,
    yos_band,
)


class TestGrades:
    """Tests for grade helpers."""

    @pytest.mark.parametrize("raw", ["E-5", "e5", " E5 "])
    def test_normalize(self, raw) -> None:
        assert normalize_pay_grade(raw) == "E5"

    def test_grade_number(self) -> None:
        assert grade_number("O-3") == 3
        with pytest.raises(UnknownPayGrade):
            grade_number("General")


class TestBasePay:
    """Tests for base pay and BAS."""

    @pytest.mark.parametrize(
        ("years", "band"),
        [(0, 0), (1.5, 0), (2, 2), (5, 4), (9, 8), (22, 10)],
    )
    def test_yos_band(self, years, band) -> None:
        assert yos_band(years) == band

    def test_base_pay(self) -> None:
        assert get_base_pay("E-5", 4) == Decimal("3802.20")
        assert get_base_pay("E5", 5) == Decimal("3802.20")
        assert get_base_pay("E5", 12) == Decimal("4234.50")
        assert get_base_pay("e1", 0) == Decimal("2319.00")

    def test_unknown_grade(self) -> None:
        with pytest.raises(UnknownPayGrade, match="not in BASE_PAY_TABLE"):
            get_base_pay("O3", 4)
        # Still a ValueError for callers that catch the builtin
        with pytest.raises(ValueError):
            get_base_pay("E10", 4)

    def test_bas(self) -> None:
        assert get_bas_rate("E-5") == Decimal("460.25")
        assert get_bas_rate("O-3") == Decimal("316.98")

    @pytest.mark.parametrize(
        ("grade", "rate"),
        [("E-5", "150"), ("O-1", "125"), ("O-4", "350"), ("O-6", "840")],
    )
    def test_flight_pay(self, grade, rate) -> None:
        assert get_flight_pay_rate(grade) == Decimal(rate)


class TestBah:
    """Tests for BAH lookups."""

    def test_rate_by_dependents(self) -> None:
        assert get_bah_rate("VA322", "E-5", True) == Decimal("1914")
        assert get_bah_rate("va322", "E5", False) == Decimal("1581")

    def test_junior_enlisted_share_a_row(self) -> None:
        assert get_bah_rate("CA371", "E1", True) == get_bah_rate("CA371", "E4", True) == Decimal("2871")

    def test_unknown_area_or_grade(self) -> None:
        assert get_bah_rate("ZZ999", "E5", True) is None
        assert get_bah_rate("VA322", "W2", True) is None
        assert get_housing_area("ZZ999") is None

    def test_find_by_zip(self) -> None:
        assert find_mha_by_zip("23502").mha == "VA322"
        assert find_mha_by_zip(" 92101 ").mha == "CA371"
        assert find_mha_by_zip("99999") is None
