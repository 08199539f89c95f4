"""Policy lifecycle orchestration and serialization helpers."""

from __future__ import annotations

import logging
from contextlib import nullcontext
from typing import Optional

from taylor_insurance.auth import User, UserStore
from taylor_insurance.models import (
    NO_CONTEXT,
    AutoRiskProfile,
    HomeRiskProfile,
    Policy,
    PolicyKind,
    RiskProfile,
    generate_policy_number,
)
from taylor_insurance.premium_engine import PricingConfig, calculate_premium

logger = logging.getLogger(__name__)


class PolicyNotFoundError(LookupError):
    pass


class PolicyEngine:
    """
    Composition root for accounts and policies.

    The identity store is injected so that each engine (and each app built
    around one) owns its users outright. Operations on a user's book run
    under that user's lock, so concurrent requests for one user take turns.
    """

    def __init__(self, users: Optional[UserStore] = None, pricing: Optional[PricingConfig] = None) -> None:
        self.users = users if users is not None else UserStore()
        self.pricing = pricing

    # Accounts

    def register(self, username: str, password: str) -> User:
        return self.users.create_user(username, password)

    def login(self, username: str, password: str) -> User:
        return self.users.resolve_user(username, password)

    # Policies

    @staticmethod
    def _locked(owner: Optional[User]):
        return owner.lock if owner is not None else nullcontext()

    def _new_policy_number(self, user: User, kind: PolicyKind) -> str:
        for _ in range(100):
            candidate = generate_policy_number(kind)
            if user.book.find(candidate) is None:
                return candidate
        raise ValueError("Unable to generate a unique policy number")

    def start_policy(self, user: User, kind: PolicyKind, risk: RiskProfile) -> Policy:
        kind = PolicyKind(kind)
        with user.lock:
            policy = Policy(kind=kind, risk=risk, policy_number=self._new_policy_number(user, kind))
            user.book.add(policy)

            # Evaluated after the append: the new policy only ever counts towards
            # its own kind, so it cannot discount itself.
            context = user.book.cross_policy_context()
            calculate_premium(policy, context, self.pricing)

        logger.info(
            "Started %s policy %s for %s (premium %.2f)",
            kind.value,
            policy.policy_number,
            user.username,
            policy.total_premium,
        )
        return policy

    create_policy = start_policy

    def start_auto_policy(self, user: User, risk: AutoRiskProfile) -> Policy:
        return self.start_policy(user, PolicyKind.AUTO, risk)

    def start_home_policy(self, user: User, risk: HomeRiskProfile) -> Policy:
        return self.start_policy(user, PolicyKind.HOME, risk)

    def request_quote(self, kind: PolicyKind, risk: RiskProfile) -> float:
        policy = Policy(kind=kind, risk=risk)
        return calculate_premium(policy, NO_CONTEXT, self.pricing)

    quote = request_quote

    def list_policies(self, user: User) -> tuple[Policy, ...]:
        return user.book.policies

    def get_policy(self, user: User, policy_number: str) -> Policy:
        policy = user.book.find(policy_number)
        if policy is None:
            raise PolicyNotFoundError(f"Policy not found: {policy_number}")
        return policy

    def renew(self, policy: Policy, owner: Optional[User] = None) -> None:
        with self._locked(owner):
            policy.renew_policy()
        logger.info(
            "Renewed %s policy %s until %s",
            policy.kind.value,
            policy.policy_number,
            policy.end_date.isoformat(),
        )

    def cancel(self, policy: Policy, owner: Optional[User] = None) -> None:
        with self._locked(owner):
            policy.cancel_policy()
        logger.info(
            "Canceled %s policy %s; billing continues to the end of the month",
            policy.kind.value,
            policy.policy_number,
        )

    def cancel_and_remove(self, user: User, index: int) -> Policy:
        with user.lock:
            policy = user.book.get(index)
            self.cancel(policy, user)
            user.book.remove_at(index)
        logger.info("Removed policy %s from %s", policy.policy_number, user.username)
        return policy

    remove_policy = cancel_and_remove


def _serialize_risk(policy: Policy) -> dict:
    risk = policy.risk
    if isinstance(risk, AutoRiskProfile):
        vehicle = risk.vehicle
        return {
            "vehicle": {
                "make": vehicle.make,
                "model": vehicle.model,
                "year": vehicle.year,
                "age": vehicle.age,
            },
            "driver_age": risk.driver_age,
            "accident_count": risk.accident_count,
        }
    return {
        "home_value": risk.home_value,
        "home_age": risk.home_age,
        "dwelling_type": risk.dwelling_type,
        "location": risk.location,
        "heating_type": risk.heating_type,
        "liability_limit": risk.liability_limit,
    }


def serialize_policy(policy: Policy) -> dict:
    return {
        "policy_number": policy.policy_number,
        "kind": policy.kind.value,
        "base_premium": policy.base_premium,
        "total_premium": round(policy.total_premium, 2),
        "status": policy.status,
        "is_active": policy.is_active,
        "start_date": policy.start_date.isoformat() if policy.start_date else None,
        "end_date": policy.end_date.isoformat() if policy.end_date else None,
        "details": _serialize_risk(policy),
    }


def format_policy_summary(index: int, policy: Policy) -> str:
    details = _serialize_risk(policy)
    lines = [
        f"{index}. {policy.kind.value.title()} Policy ({policy.policy_number})",
        f"   - Premium: ${policy.total_premium:.2f}",
        f"   - Start Date: {policy.start_date.isoformat()}",
        f"   - End Date: {policy.end_date.isoformat()}",
        f"   - Status: {policy.status.title()}",
    ]
    if policy.kind is PolicyKind.AUTO:
        vehicle = details["vehicle"]
        lines += [
            f"   - Vehicle: {vehicle['make']} {vehicle['model']} ({vehicle['year']})",
            f"   - Driver Age: {details['driver_age']}",
            f"   - Accidents in Last 5 Years: {details['accident_count']}",
        ]
    else:
        lines += [
            f"   - Home Value: ${details['home_value']:.2f}",
            f"   - Home Age: {details['home_age']} years",
            f"   - Location: {details['location']}",
            f"   - Heating Type: {details['heating_type']}",
            f"   - Liability Limit: ${details['liability_limit']:.2f}",
        ]
    return "\n".join(lines)
