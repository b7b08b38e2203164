"""Ownership predicate used by every scoped lookup and write.

Each owned model exposes ``owner_clause(user_id)``, which walks its relation
chain up to the owning user (e.g. a flashcard through its study kit). Going
through ``OwnerScope`` everywhere keeps "not yours" and "does not exist"
producing the same empty result.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import Select, select


@dataclass(frozen=True)
class OwnerScope:
    user_id: int

    def clause(self, model):
        return model.owner_clause(self.user_id)

    def select(self, model) -> Select:
        return select(model).where(self.clause(model))

    def select_one(self, model, record_id: int) -> Select:
        return self.select(model).where(model.id == record_id)


__all__ = ["OwnerScope"]
