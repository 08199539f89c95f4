"""Domain models: vehicles, risk profiles, and policies."""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Union


class PolicyKind(str, Enum):
    AUTO = "auto"
    HOME = "home"


BASE_PREMIUMS = {
    PolicyKind.AUTO: 750.0,
    PolicyKind.HOME: 500.0,
}

_POLICY_PREFIXES = {
    PolicyKind.AUTO: "AUT",
    PolicyKind.HOME: "HOM",
}


@dataclass(frozen=True)
class Vehicle:
    make: str
    model: str
    year: int

    @property
    def age(self) -> int:
        # Not cached: the same vehicle ages as the calendar moves on.
        return date.today().year - self.year


@dataclass(frozen=True)
class AutoRiskProfile:
    driver_age: int
    accident_count: int
    vehicle: Vehicle


@dataclass(frozen=True)
class HomeRiskProfile:
    home_age: int
    dwelling_type: str
    heating_type: str
    location: str
    home_value: float
    liability_limit: float


RiskProfile = Union[AutoRiskProfile, HomeRiskProfile]


@dataclass(frozen=True)
class CrossPolicyContext:
    """What else the owner holds when a premium is calculated."""

    has_active_auto: bool = False
    has_active_home: bool = False


NO_CONTEXT = CrossPolicyContext()


def add_one_year(day: date) -> date:
    try:
        return day.replace(year=day.year + 1)
    except ValueError:
        # 29 February
        return day.replace(year=day.year + 1, day=28)


def generate_policy_number(kind: PolicyKind) -> str:
    prefix = _POLICY_PREFIXES.get(kind, "POL")
    return f"{prefix}{100000 + secrets.randbelow(900000)}"


@dataclass
class Policy:
    """
    A single insurance policy.

    The kind tag selects both the shape of ``risk`` and the pricing rules
    applied to it. ``total_premium`` stays at 0.0 until the premium engine
    has run once; renewals never recompute it.
    """

    kind: PolicyKind
    risk: RiskProfile
    policy_number: str = ""
    base_premium: float = 0.0
    total_premium: float = 0.0
    start_date: date = field(default_factory=date.today)
    end_date: date | None = None
    is_active: bool = True

    def __post_init__(self) -> None:
        self.kind = PolicyKind(self.kind)
        expected = AutoRiskProfile if self.kind is PolicyKind.AUTO else HomeRiskProfile
        if not isinstance(self.risk, expected):
            raise TypeError(
                f"{self.kind.value} policy requires {expected.__name__}, "
                f"got {type(self.risk).__name__}"
            )
        if not self.base_premium:
            self.base_premium = BASE_PREMIUMS[self.kind]
        if not self.policy_number:
            self.policy_number = generate_policy_number(self.kind)
        if self.end_date is None:
            self.end_date = add_one_year(self.start_date)

    @property
    def status(self) -> str:
        return "active" if self.is_active else "canceled"

    def renew_policy(self, today: date | None = None) -> None:
        # Leaves is_active alone: a canceled policy stays canceled.
        self.start_date = today or date.today()
        self.end_date = add_one_year(self.start_date)

    def cancel_policy(self) -> None:
        self.is_active = False
