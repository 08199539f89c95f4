"""
Premium calculation rules for auto and home policies.

Provides:
- pricing configuration (rate tables)
- per-kind pricing with a factor breakdown
- premium calculation for a policy given the owner's other holdings

Notes:
- Everything here is pure: no state is read or written except the
  ``total_premium`` set by ``calculate_premium``.
- Out-of-range inputs (negative ages or counts) are not rejected; they flow
  through the arithmetic. Validation belongs to whoever collects the input.
- Tax is always the final multiplication, after any cross-policy discount.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

from taylor_insurance.models import (
    BASE_PREMIUMS,
    NO_CONTEXT,
    AutoRiskProfile,
    CrossPolicyContext,
    HomeRiskProfile,
    Policy,
    PolicyKind,
    RiskProfile,
)


@dataclass(frozen=True)
class PricingConfig:
    tax_rate: float = 1.15
    cross_policy_discount: float = 0.9

    # Auto
    young_driver_age: int = 25
    young_driver_factor: float = 2.0
    one_accident_factor: float = 1.25
    many_accidents_threshold: int = 2
    many_accidents_factor: float = 2.5
    vehicle_age_mid: int = 5
    vehicle_age_mid_factor: float = 1.5
    vehicle_age_old: int = 10
    vehicle_age_old_factor: float = 2.0

    # Home
    home_value_threshold: float = 250000.0
    home_value_rate: float = 0.002
    high_liability_limit: float = 2000000.0
    high_liability_factor: float = 1.25
    home_age_mid: int = 25
    home_age_mid_factor: float = 1.25
    home_age_old: int = 50
    home_age_old_factor: float = 1.5
    heating_factors: Tuple[Tuple[str, float], ...] = (("oil", 2.0), ("wood", 1.25))
    rural_factor: float = 1.15


DEFAULT_PRICING = PricingConfig()


@dataclass(frozen=True)
class PremiumBreakdown:
    kind: str
    base_premium: float
    pre_tax: float
    total: float
    factors: List[Tuple[str, float]]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _auto_accident_factor(accident_count: int, cfg: PricingConfig) -> float:
    # Exactly two accidents prices the same as none.
    if accident_count > cfg.many_accidents_threshold:
        return cfg.many_accidents_factor
    if accident_count == 1:
        return cfg.one_accident_factor
    return 1.0


def _auto_vehicle_factor(vehicle_age: int, cfg: PricingConfig) -> float:
    if vehicle_age > cfg.vehicle_age_old:
        return cfg.vehicle_age_old_factor
    if vehicle_age > cfg.vehicle_age_mid:
        return cfg.vehicle_age_mid_factor
    return 1.0


def _home_age_factor(home_age: int, cfg: PricingConfig) -> float:
    if home_age > cfg.home_age_old:
        return cfg.home_age_old_factor
    if home_age > cfg.home_age_mid:
        return cfg.home_age_mid_factor
    return 1.0


def price_auto(
    risk: AutoRiskProfile,
    context: CrossPolicyContext = NO_CONTEXT,
    cfg: Optional[PricingConfig] = None,
) -> PremiumBreakdown:
    cfg = cfg or DEFAULT_PRICING
    base = BASE_PREMIUMS[PolicyKind.AUTO]

    factors = [
        ("driver_age", cfg.young_driver_factor if risk.driver_age < cfg.young_driver_age else 1.0),
        ("accidents", _auto_accident_factor(risk.accident_count, cfg)),
        ("vehicle_age", _auto_vehicle_factor(risk.vehicle.age, cfg)),
    ]
    if context.has_active_home:
        factors.append(("multi_policy_discount", cfg.cross_policy_discount))

    premium = base
    for _, value in factors:
        premium *= value

    return PremiumBreakdown(
        kind=PolicyKind.AUTO.value,
        base_premium=base,
        pre_tax=premium,
        total=premium * cfg.tax_rate,
        factors=factors + [("tax", cfg.tax_rate)],
    )


def price_home(
    risk: HomeRiskProfile,
    context: CrossPolicyContext = NO_CONTEXT,
    cfg: Optional[PricingConfig] = None,
) -> PremiumBreakdown:
    cfg = cfg or DEFAULT_PRICING
    base = BASE_PREMIUMS[PolicyKind.HOME]

    premium = base
    surcharge = 0.0
    if risk.home_value > cfg.home_value_threshold:
        surcharge = (risk.home_value - cfg.home_value_threshold) * cfg.home_value_rate
        premium += surcharge

    factors = [
        ("liability_limit", cfg.high_liability_factor if risk.liability_limit == cfg.high_liability_limit else 1.0),
        ("home_age", _home_age_factor(risk.home_age, cfg)),
        ("heating", dict(cfg.heating_factors).get((risk.heating_type or "").lower(), 1.0)),
        ("location", cfg.rural_factor if (risk.location or "").lower() == "rural" else 1.0),
    ]
    if context.has_active_auto:
        factors.append(("multi_policy_discount", cfg.cross_policy_discount))

    for _, value in factors:
        premium *= value

    return PremiumBreakdown(
        kind=PolicyKind.HOME.value,
        base_premium=base,
        pre_tax=premium,
        total=premium * cfg.tax_rate,
        factors=[("home_value_surcharge", surcharge)] + factors + [("tax", cfg.tax_rate)],
    )


def price(
    kind: PolicyKind,
    risk: RiskProfile,
    context: CrossPolicyContext = NO_CONTEXT,
    cfg: Optional[PricingConfig] = None,
) -> PremiumBreakdown:
    kind = PolicyKind(kind)
    if kind is PolicyKind.AUTO:
        return price_auto(risk, context, cfg)  # type: ignore[arg-type]
    return price_home(risk, context, cfg)  # type: ignore[arg-type]


def compute_premium(
    kind: PolicyKind,
    risk: RiskProfile,
    context: CrossPolicyContext = NO_CONTEXT,
    cfg: Optional[PricingConfig] = None,
) -> float:
    """Taxed total premium for one risk profile."""
    return price(kind, risk, context, cfg).total


def calculate_premium(
    policy: Policy,
    context: CrossPolicyContext = NO_CONTEXT,
    cfg: Optional[PricingConfig] = None,
) -> float:
    """
    Price a policy and store the result on it.

    Does not touch the policy's state or dates.
    """
    policy.total_premium = compute_premium(policy.kind, policy.risk, context, cfg)
    return policy.total_premium
