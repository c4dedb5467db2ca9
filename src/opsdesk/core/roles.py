# src/opsdesk/core/roles.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Role(StrEnum):
    """
    Dashboard roles.

    - ADMIN: privileged validator (the back office calls it "responsable").
    - COLLABORATEUR / CLIENT: confirmers.
    - AUTHOR: default role that captures orders and tasks.
    """

    ADMIN = "admin"
    COLLABORATEUR = "collaborateur"
    CLIENT = "client"
    AUTHOR = "author"

    @classmethod
    def parse(cls, raw: str | None) -> Role:
        if not raw:
            return cls.AUTHOR
        key = raw.strip().lower()
        if key == "responsable":
            return cls.ADMIN
        try:
            return cls(key)
        except ValueError:
            return cls.AUTHOR

    @property
    def is_privileged(self) -> bool:
        return self is Role.ADMIN

    @property
    def is_confirmer(self) -> bool:
        return self in (Role.COLLABORATEUR, Role.CLIENT)


@dataclass(slots=True, frozen=True)
class Actor:
    """Who is calling. Passed explicitly into every controller operation."""

    user_id: str
    role: Role = Role.AUTHOR
