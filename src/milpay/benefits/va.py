"""VA disability math and compensation lookup.

The VA combines ratings with the "whole person" method: each rating is
applied to the efficiency that remains after the higher ratings, never
added directly. 50% and 30% combine to 65%, which rounds to 70%.

References:
- 38 CFR 4.25 - Combined ratings table
- VA compensation rates effective 2024-12-01
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

HUNDRED = Decimal("100")
TEN = Decimal("10")
ZERO = Decimal("0")

# Monthly rates keyed by rating bracket
VA_COMPENSATION_RATES_2024: dict[str, dict[int, Decimal]] = {
    # Veteran alone
    "single": {
        10: Decimal("171.23"),
        20: Decimal("338.49"),
        30: Decimal("524.31"),
        40: Decimal("755.28"),
        50: Decimal("1075.16"),
        60: Decimal("1361.88"),
        70: Decimal("1716.28"),
        80: Decimal("1995.01"),
        90: Decimal("2241.91"),
        100: Decimal("3737.85"),
    },
    "with_spouse": {
        30: Decimal("586.31"),
        40: Decimal("838.28"),
        50: Decimal("1179.16"),
        60: Decimal("1486.88"),
        70: Decimal("1862.28"),
        80: Decimal("2161.01"),
        90: Decimal("2428.91"),
        100: Decimal("3946.25"),
    },
    # Includes the first child
    "with_spouse_and_child": {
        30: Decimal("633.31"),
        40: Decimal("899.28"),
        50: Decimal("1254.16"),
        60: Decimal("1575.88"),
        70: Decimal("1966.28"),
        80: Decimal("2280.01"),
        90: Decimal("2562.91"),
        100: Decimal("4096.64"),
    },
    "additional_child": {
        30: Decimal("29"),
        40: Decimal("39"),
        50: Decimal("48"),
        60: Decimal("58"),
        70: Decimal("68"),
        80: Decimal("77"),
        90: Decimal("87"),
        100: Decimal("97.24"),
    },
    # Children 18-23 in school
    "additional_child_school": {
        30: Decimal("94"),
        40: Decimal("125"),
        50: Decimal("156"),
        60: Decimal("188"),
        70: Decimal("219"),
        80: Decimal("250"),
        90: Decimal("281"),
        100: Decimal("313.64"),
    },
}

SPOUSE_AID_ATTENDANCE_2024 = Decimal("186.59")

DEPENDENT_MINIMUM_RATING = 30


# =============================================================================
# Combined Rating
# =============================================================================


@dataclass
class CombinationStep:
    """One line of the combined-ratings worksheet."""

    step: int
    rating: int
    efficiency_before: Decimal
    reduction: Decimal
    efficiency_after: Decimal
    explanation: str


@dataclass
class CombinedRating:
    """Combined rating with its worksheet."""

    ratings: list[int]
    combined_exact: Decimal
    combined_rating: int
    steps: list[CombinationStep] = field(default_factory=list)


def round_to_nearest_10(value: Decimal) -> int:
    """Round half up to a multiple of ten (65 -> 70, 64.9 -> 60)."""
    return int((value / TEN).quantize(Decimal("1"), rounding=ROUND_HALF_UP) * TEN)


def combine_ratings_detail(ratings: Iterable[int]) -> CombinedRating:
    """Combine ratings highest first, keeping each efficiency reduction.

    An empty list combines to 0 and a single rating is returned as given,
    without rounding.
    """
    ordered = sorted(ratings, reverse=True)

    if not ordered:
        return CombinedRating(ratings=[], combined_exact=ZERO, combined_rating=0)
    if len(ordered) == 1:
        only = ordered[0]
        return CombinedRating(
            ratings=ordered,
            combined_exact=Decimal(only),
            combined_rating=only,
            steps=[
                CombinationStep(
                    step=1,
                    rating=only,
                    efficiency_before=HUNDRED,
                    reduction=Decimal(only),
                    efficiency_after=HUNDRED - Decimal(only),
                    explanation=f"Single rating: {only}%",
                )
            ],
        )

    efficiency = HUNDRED
    steps = []
    for index, rating in enumerate(ordered, start=1):
        before = efficiency
        reduction = before * Decimal(rating) / HUNDRED
        efficiency = before - reduction
        steps.append(
            CombinationStep(
                step=index,
                rating=rating,
                efficiency_before=before,
                reduction=reduction,
                efficiency_after=efficiency,
                explanation=(
                    f"{rating}% of {before:f}% remaining = {reduction:f}% "
                    f"-> efficiency {efficiency:f}%"
                ),
            )
        )

    exact = HUNDRED - efficiency
    return CombinedRating(
        ratings=ordered,
        combined_exact=exact,
        combined_rating=round_to_nearest_10(exact),
        steps=steps,
    )


def combine_ratings(ratings: Iterable[int]) -> int:
    """Combined VA rating, rounded to the nearest 10."""
    return combine_ratings_detail(ratings).combined_rating


def combined_rating_exact(ratings: Iterable[int]) -> Decimal:
    """Whole-person value before rounding ([50, 30] -> 65)."""
    return combine_ratings_detail(ratings).combined_exact


# =============================================================================
# Compensation
# =============================================================================


def rating_bracket(rating: int) -> int:
    """Table row for a rating: the multiple of ten at or below it, capped at 100."""
    return min(int(rating) // 10 * 10, 100)


def get_va_compensation(
    combined_rating: int,
    has_spouse: bool = False,
    number_of_children: int = 0,
    school_age_children: int = 0,
    spouse_needs_aid_attendance: bool = False,
) -> Decimal:
    """Monthly VA compensation for a combined rating and dependents.

    Ratings below 10 pay nothing. At 10 and 20 percent the single rate
    applies regardless of dependents.
    """
    bracket = rating_bracket(combined_rating)
    if bracket < 10:
        return ZERO
    if bracket < DEPENDENT_MINIMUM_RATING:
        return VA_COMPENSATION_RATES_2024["single"][bracket]

    rates = VA_COMPENSATION_RATES_2024
    if has_spouse and number_of_children > 0:
        amount = rates["with_spouse_and_child"][bracket]
        if number_of_children > 1:
            amount += rates["additional_child"][bracket] * (number_of_children - 1)
    elif has_spouse:
        amount = rates["with_spouse"][bracket]
    else:
        amount = rates["single"][bracket]

    if school_age_children > 0:
        amount += rates["additional_child_school"][bracket] * school_age_children

    if spouse_needs_aid_attendance:
        amount += SPOUSE_AID_ATTENDANCE_2024

    return amount


class VaCompensationInput(BaseModel):
    """Ratings and dependents for a compensation estimate."""

    model_config = ConfigDict(frozen=True)

    ratings: list[Annotated[int, Field(ge=0, le=100)]] = Field(default_factory=list)
    has_spouse: bool = False
    number_of_children: int = Field(default=0, ge=0)
    school_age_children: int = Field(default=0, ge=0)
    spouse_needs_aid_attendance: bool = False

    @property
    def combined_rating(self) -> int:
        return combine_ratings(self.ratings)


@dataclass
class VaCompensationEstimate:
    combined: CombinedRating
    monthly_amount: Decimal
    annual_amount: Decimal


def estimate_va_compensation(data: VaCompensationInput) -> VaCompensationEstimate:
    """Combine the ratings and look up the monthly amount."""
    combined = combine_ratings_detail(data.ratings)
    monthly = get_va_compensation(
        combined.combined_rating,
        has_spouse=data.has_spouse,
        number_of_children=data.number_of_children,
        school_age_children=data.school_age_children,
        spouse_needs_aid_attendance=data.spouse_needs_aid_attendance,
    )
    return VaCompensationEstimate(
        combined=combined,
        monthly_amount=monthly,
        annual_amount=monthly * 12,
    )
