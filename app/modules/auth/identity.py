from __future__ import annotations

from dataclasses import dataclass

from app.core.db.ownership import OwnerScope


@dataclass(frozen=True)
class CallerIdentity:
    """The authenticated caller, as seen by the generation pipeline."""

    user_id: int

    @property
    def scope(self) -> OwnerScope:
        return OwnerScope(self.user_id)

    def __str__(self) -> str:
        return f"user:{self.user_id}"
