from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Caller identity forwarded by the upstream gateway.

    user_id: X-User-Id header
    roles:   X-User-Roles header (comma separated), e.g. {"admin"}
    """

    user_id: str
    roles: frozenset[str]

    def has_role(self, role: str) -> bool:
        return role in self.roles
