"""Per-user ordered policy collection."""

from __future__ import annotations

from typing import Iterator

from taylor_insurance.models import CrossPolicyContext, Policy, PolicyKind


class PolicyIndexError(IndexError):
    """A policy position outside ``[0, len(book))``."""

    def __init__(self, index: int, size: int) -> None:
        if size:
            message = f"Policy index {index} is out of range (0..{size - 1})"
        else:
            message = f"Policy index {index} is out of range (no policies)"
        super().__init__(message)
        self.index = index
        self.size = size


class PolicyBook:
    """
    Ordered sequence of one user's policies.

    Order is insertion order and is only used for display and positional
    removal. Not synchronized: callers sharing a book across threads must
    serialize access themselves.
    """

    def __init__(self) -> None:
        self._policies: list[Policy] = []

    def __len__(self) -> int:
        return len(self._policies)

    def __iter__(self) -> Iterator[Policy]:
        return iter(tuple(self._policies))

    @property
    def policies(self) -> tuple[Policy, ...]:
        return tuple(self._policies)

    def add(self, policy: Policy) -> None:
        self._policies.append(policy)

    def _check_index(self, index: int) -> None:
        # Negative positions are not accepted, unlike list indexing.
        if not 0 <= index < len(self._policies):
            raise PolicyIndexError(index, len(self._policies))

    def get(self, index: int) -> Policy:
        self._check_index(index)
        return self._policies[index]

    def remove_at(self, index: int) -> Policy:
        self._check_index(index)
        return self._policies.pop(index)

    def find(self, policy_number: str) -> Policy | None:
        wanted = (policy_number or "").upper().strip()
        for policy in self._policies:
            if policy.policy_number == wanted:
                return policy
        return None

    def has_active(self, kind: PolicyKind) -> bool:
        kind = PolicyKind(kind)
        return any(p.kind is kind and p.is_active for p in self._policies)

    def count_active(self, kind: PolicyKind) -> int:
        kind = PolicyKind(kind)
        return sum(1 for p in self._policies if p.kind is kind and p.is_active)

    def cross_policy_context(self) -> CrossPolicyContext:
        return CrossPolicyContext(
            has_active_auto=self.has_active(PolicyKind.AUTO),
            has_active_home=self.has_active(PolicyKind.HOME),
        )
