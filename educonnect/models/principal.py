from __future__ import annotations

from dataclasses import dataclass

# Roles that may author courses and assessments and manage certificates
STAFF_ROLES = frozenset({"tutor", "admin"})


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated JWT.

    Carried through the request via FastAPI's dependency system.
    ``user_id`` is the token subject; ``roles`` come from the ``roles``
    claim (student, tutor, admin).
    """

    user_id: str
    roles: frozenset[str]

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_any_role(self, roles: set[str] | frozenset[str]) -> bool:
        return bool(self.roles & roles)

    def is_staff(self) -> bool:
        return self.has_any_role(STAFF_ROLES)
