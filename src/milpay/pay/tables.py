"""Pay lookup tables: base pay, BAS, BAH and special pay rates.

These tables are the data boundary of the pay estimator. The bundled
values are a sample (junior enlisted base pay, four housing areas); a
full deployment would load the published DFAS/DTMO tables instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

# Years-of-service columns of the base pay table
YOS_BANDS = (0, 2, 3, 4, 6, 8, 10)

BASE_PAY_TABLE: dict[str, dict[int, Decimal]] = {
    "E6": {0: Decimal("3276.60"), 2: Decimal("3606.00"), 3: Decimal("3765.00"), 4: Decimal("3919.80"),
           6: Decimal("4080.60"), 8: Decimal("4443.90"), 10: Decimal("4585.20")},
    "E5": {0: Decimal("3220.50"), 2: Decimal("3466.50"), 3: Decimal("3637.50"), 4: Decimal("3802.20"),
           6: Decimal("3959.40"), 8: Decimal("4124.40"), 10: Decimal("4234.50")},
    "E4": {0: Decimal("3027.30"), 2: Decimal("3182.10"), 3: Decimal("3354.90"), 4: Decimal("3524.70"),
           6: Decimal("3675.60"), 8: Decimal("3675.60"), 10: Decimal("3675.60")},
    "E3": {0: Decimal("2733.00"), 2: Decimal("2904.60"), 3: Decimal("3081.00"), 4: Decimal("3081.00"),
           6: Decimal("3081.00"), 8: Decimal("3081.00"), 10: Decimal("3081.00")},
    "E2": {band: Decimal("2599.20") for band in YOS_BANDS},
    "E1": {band: Decimal("2319.00") for band in YOS_BANDS},
}

BAS_RATES_2024 = {
    "enlisted": Decimal("460.25"),
    "officer": Decimal("316.98"),
}

SPECIAL_PAY_RATES = {
    "hostile_fire": Decimal("225"),
    "imminent_danger": Decimal("225"),
    "family_separation": Decimal("250"),
    "jump_pay": Decimal("150"),
    "dive_pay": Decimal("150"),
    "flight_pay_enlisted": Decimal("150"),
    "flight_pay_o1_o2": Decimal("125"),
    "flight_pay_o3_o4": Decimal("350"),
    "flight_pay_o5_o6": Decimal("840"),
}


class UnknownPayGrade(ValueError):
    """Pay grade missing from a lookup table."""


def normalize_pay_grade(pay_grade: str) -> str:
    """``"E-5"``, ``"e5"`` and ``" E5 "`` all become ``"E5"``."""
    return pay_grade.strip().upper().replace("-", "")


def is_enlisted(pay_grade: str) -> bool:
    return normalize_pay_grade(pay_grade).startswith("E")


def grade_number(pay_grade: str) -> int:
    """Numeric part of a grade (``"O-3"`` -> 3)."""
    digits = normalize_pay_grade(pay_grade)[1:]
    if not digits.isdigit():
        raise UnknownPayGrade(f"Unrecognized pay grade: {pay_grade}")
    return int(digits)


# =============================================================================
# Base Pay and BAS
# =============================================================================


def yos_band(years_of_service: Decimal | float | int) -> int:
    """Highest table column at or below the years served."""
    band = 0
    for threshold in YOS_BANDS:
        if years_of_service >= threshold:
            band = threshold
    return band


def get_base_pay(pay_grade: str, years_of_service: Decimal | float | int) -> Decimal:
    """Monthly base pay for a grade and years of service.

    Raises:
        UnknownPayGrade: If the grade is not in the table
    """
    grade = normalize_pay_grade(pay_grade)
    if grade not in BASE_PAY_TABLE:
        raise UnknownPayGrade(f"Pay grade {pay_grade} not in BASE_PAY_TABLE.")
    return BASE_PAY_TABLE[grade][yos_band(years_of_service)]


def get_bas_rate(pay_grade: str) -> Decimal:
    """Monthly BAS: one rate for enlisted members, one for officers."""
    return BAS_RATES_2024["enlisted" if is_enlisted(pay_grade) else "officer"]


def get_flight_pay_rate(pay_grade: str) -> Decimal:
    if is_enlisted(pay_grade):
        return SPECIAL_PAY_RATES["flight_pay_enlisted"]
    grade = grade_number(pay_grade)
    if grade <= 2:
        return SPECIAL_PAY_RATES["flight_pay_o1_o2"]
    if grade <= 4:
        return SPECIAL_PAY_RATES["flight_pay_o3_o4"]
    return SPECIAL_PAY_RATES["flight_pay_o5_o6"]


# =============================================================================
# BAH
# =============================================================================


@dataclass(frozen=True)
class HousingArea:
    """A Military Housing Area and its BAH rates.

    ``rates`` maps grade to (with dependents, without dependents).
    """

    mha: str
    name: str
    state: str
    zip_codes: tuple[str, ...]
    rates: dict[str, tuple[Decimal, Decimal]]


def _bah_rows(junior: tuple[int, int], *senior: tuple[str, int, int]) -> dict[str, tuple[Decimal, Decimal]]:
    """E1-E4 share one row; the remaining grades are listed explicitly."""
    rows = {f"E{n}": (Decimal(junior[0]), Decimal(junior[1])) for n in range(1, 5)}
    for grade, with_dependents, without_dependents in senior:
        rows[grade] = (Decimal(with_dependents), Decimal(without_dependents))
    return rows


def _zips(prefix: str) -> tuple[str, ...]:
    return tuple(f"{prefix}{n:02d}" for n in range(1, 10))


HOUSING_AREAS: tuple[HousingArea, ...] = (
    HousingArea(
        mha="VA322",
        name="Norfolk-Virginia Beach-Newport News",
        state="VA",
        zip_codes=("23502", "23503", "23504", "23505", "23507", "23508", "23509", "23510", "23511"),
        rates=_bah_rows(
            (1845, 1470),
            ("E5", 1914, 1581), ("E6", 2049, 1695), ("E7", 2148, 1785), ("E8", 2286, 1917),
            ("E9", 2385, 2004), ("O1", 1941, 1611), ("O2", 2049, 1695), ("O3", 2229, 1875),
            ("O4", 2433, 2061), ("O5", 2556, 2184), ("O6", 2652, 2277),
        ),
    ),
    HousingArea(
        mha="CA371",
        name="San Diego",
        state="CA",
        zip_codes=_zips("921"),
        rates=_bah_rows(
            (2871, 2226),
            ("E5", 3003, 2385), ("E6", 3192, 2589), ("E7", 3345, 2739), ("E8", 3561, 2913),
            ("E9", 3729, 3063), ("O1", 3063, 2478), ("O2", 3192, 2589), ("O3", 3477, 2841),
            ("O4", 3798, 3126), ("O5", 3996, 3291), ("O6", 4134, 3414),
        ),
    ),
    HousingArea(
        mha="TX328",
        name="San Antonio",
        state="TX",
        zip_codes=_zips("782"),
        rates=_bah_rows(
            (1623, 1287),
            ("E5", 1689, 1377), ("E6", 1800, 1479), ("E7", 1881, 1548), ("E8", 2007, 1656),
            ("E9", 2106, 1740), ("O1", 1713, 1404), ("O2", 1800, 1479), ("O3", 1956, 1620),
            ("O4", 2145, 1782), ("O5", 2250, 1872), ("O6", 2334, 1950),
        ),
    ),
    HousingArea(
        mha="NC324",
        name="Fayetteville",
        state="NC",
        zip_codes=_zips("283"),
        rates=_bah_rows(
            (1275, 1044),
            ("E5", 1326, 1101), ("E6", 1422, 1179), ("E7", 1479, 1233), ("E8", 1581, 1317),
            ("E9", 1656, 1380), ("O1", 1353, 1122), ("O2", 1422, 1179), ("O3", 1545, 1287),
            ("O4", 1692, 1416), ("O5", 1776, 1485), ("O6", 1845, 1545),
        ),
    ),
)


def get_housing_area(mha_code: str) -> HousingArea | None:
    return next((area for area in HOUSING_AREAS if area.mha == mha_code.upper()), None)


def get_bah_rate(mha_code: str, pay_grade: str, has_dependents: bool) -> Decimal | None:
    """Monthly BAH, or None when the area or grade is not in the table."""
    area = get_housing_area(mha_code)
    if area is None:
        return None
    rates = area.rates.get(normalize_pay_grade(pay_grade))
    if rates is None:
        return None
    return rates[0] if has_dependents else rates[1]


def find_mha_by_zip(zip_code: str) -> HousingArea | None:
    return next((area for area in HOUSING_AREAS if zip_code.strip() in area.zip_codes), None)
