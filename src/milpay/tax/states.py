"""State income tax approximations for military pay estimates.

Each state with an income tax is modeled with a single flat rate. Real
state codes are graduated; these rates are estimates only.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class StateTaxInfo:
    """Simplified state tax profile.

    Attributes:
        name: Full state name.
        abbreviation: Two-letter postal code.
        has_income_tax: False for states without a wage income tax.
        flat_rate: Approximate flat rate applied to adjusted income.
        military_pay_exempt: Active-duty pay exempt from state tax.
        retired_military_exempt: Military retirement pay (at least partly) exempt.
        notes: Free-text caveat for display.
    """

    name: str
    abbreviation: str
    has_income_tax: bool
    flat_rate: Decimal | None = None
    military_pay_exempt: bool = False
    retired_military_exempt: bool = False
    notes: str | None = None


# Applied when a taxing state has no flat rate on file
DEFAULT_STATE_RATE = Decimal("0.05")

NO_INCOME_TAX_STATES: tuple[str, ...] = (
    "AK", "FL", "NV", "NH", "SD", "TN", "TX", "WA", "WY",
)


def _taxed(name: str, abbr: str, rate: str, retired_exempt: bool, notes: str | None = None) -> StateTaxInfo:
    return StateTaxInfo(
        name=name,
        abbreviation=abbr,
        has_income_tax=True,
        flat_rate=Decimal(rate),
        retired_military_exempt=retired_exempt,
        notes=notes,
    )


def _untaxed(name: str, abbr: str) -> StateTaxInfo:
    return StateTaxInfo(
        name=name,
        abbreviation=abbr,
        has_income_tax=False,
        military_pay_exempt=True,
        retired_military_exempt=True,
    )


STATE_TAX_INFO: dict[str, StateTaxInfo] = {
    info.abbreviation: info
    for info in (
        _taxed("Alabama", "AL", "0.05", True, "Retired military pay exempt"),
        _untaxed("Alaska", "AK"),
        _taxed("Arizona", "AZ", "0.025", False, "Flat 2.5% rate"),
        _taxed("Arkansas", "AR", "0.044", True, "Retired military pay exempt up to $6,000"),
        _taxed("California", "CA", "0.0725", False, "High tax state with 13.3% top bracket"),
        _taxed("Colorado", "CO", "0.044", True, "Retired military can exclude up to $24,000"),
        _taxed("Connecticut", "CT", "0.055", True, "100% military retirement exempt"),
        _taxed("Delaware", "DE", "0.055", True, "Up to $12,500 military pension exempt"),
        _untaxed("Florida", "FL"),
        _taxed("Georgia", "GA", "0.0549", True),
        _taxed("Hawaii", "HI", "0.0725", True, "All military pension income exempt"),
        _taxed("Idaho", "ID", "0.058", True, "Retired military pay partially exempt"),
        _taxed("Illinois", "IL", "0.0495", True, "All retirement income exempt"),
        _taxed("Indiana", "IN", "0.0305", True, "Military retirement exempt"),
        _taxed("Iowa", "IA", "0.0385", True, "Military retirement exempt"),
        _taxed("Kansas", "KS", "0.057", True, "Military retirement exempt"),
        _taxed("Kentucky", "KY", "0.04", True, "Military retirement exempt up to $31,110"),
        _taxed("Louisiana", "LA", "0.0425", True, "Military retirement exempt"),
        _taxed("Maine", "ME", "0.0715", True, "Military pension exempt up to $10,000"),
        _taxed("Maryland", "MD", "0.0475", True),
        _taxed("Massachusetts", "MA", "0.05", True, "US military pension exempt"),
        _taxed("Michigan", "MI", "0.0425", True),
        _taxed("Minnesota", "MN", "0.0785", False),
        _taxed("Mississippi", "MS", "0.05", True),
        _taxed("Missouri", "MO", "0.0495", True),
        _taxed("Montana", "MT", "0.059", False),
        _taxed("Nebraska", "NE", "0.0584", True),
        _untaxed("Nevada", "NV"),
        _untaxed("New Hampshire", "NH"),
        _taxed("New Jersey", "NJ", "0.0637", True),
        _taxed("New Mexico", "NM", "0.049", True),
        _taxed("New York", "NY", "0.0685", True),
        _taxed("North Carolina", "NC", "0.0475", True),
        _taxed("North Dakota", "ND", "0.0195", True),
        _taxed("Ohio", "OH", "0.0399", True),
        _taxed("Oklahoma", "OK", "0.0475", True),
        _taxed("Oregon", "OR", "0.09", False),
        _taxed("Pennsylvania", "PA", "0.0307", True),
        _taxed("Rhode Island", "RI", "0.0599", True),
        _taxed("South Carolina", "SC", "0.065", True),
        _untaxed("South Dakota", "SD"),
        _untaxed("Tennessee", "TN"),
        _untaxed("Texas", "TX"),
        _taxed("Utah", "UT", "0.0485", True),
        _taxed("Vermont", "VT", "0.0675", False),
        _taxed("Virginia", "VA", "0.0575", True),
        _untaxed("Washington", "WA"),
        _taxed("West Virginia", "WV", "0.0512", True),
        _taxed("Wisconsin", "WI", "0.0653", True),
        _untaxed("Wyoming", "WY"),
        _taxed("District of Columbia", "DC", "0.085", False),
    )
}


def get_state_info(state_abbr: str) -> StateTaxInfo | None:
    """Look up a state by postal abbreviation (case-insensitive)."""
    return STATE_TAX_INFO.get(state_abbr.strip().upper())


def state_has_income_tax(state_abbr: str) -> bool:
    """Whether a state taxes wages. Unknown states are assumed to."""
    info = get_state_info(state_abbr)
    return info.has_income_tax if info else True


def get_state_tax_rate(state_abbr: str) -> Decimal:
    """Flat approximation rate; zero for unknown or no-tax states."""
    info = get_state_info(state_abbr)
    if info is None or not info.has_income_tax:
        return Decimal("0")
    return info.flat_rate if info.flat_rate is not None else DEFAULT_STATE_RATE


def is_retirement_exempt(state_abbr: str) -> bool:
    """Whether a state exempts military retirement pay."""
    info = get_state_info(state_abbr)
    return info.retired_military_exempt if info else False


def get_military_friendly_states() -> list[StateTaxInfo]:
    """States without wage tax or with active-duty pay exempt, sorted by code."""
    return sorted(
        (
            info
            for info in STATE_TAX_INFO.values()
            if not info.has_income_tax or info.military_pay_exempt
        ),
        key=lambda info: info.abbreviation,
    )
