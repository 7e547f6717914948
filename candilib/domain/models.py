from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class User:
    """Represents an authenticated actor within the system."""

    user_id: str
    roles: list[str] = field(default_factory=list)
    departements: list[str] = field(default_factory=list)
