"""Immutable snapshot base model."""

from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, ConfigDict


class StateModel(BaseModel):
    """Base for application state snapshots.

    Instances are frozen and compare by value, so a slice that is itself a
    ``StateModel`` only counts as changed when one of its fields changed.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    def evolve(self, **changes: Any) -> Self:
        """Return a validated copy with *changes* applied.

        *changes* are keyed by field name, not alias.
        """
        current = {name: getattr(self, name) for name in type(self).model_fields}
        return self.model_validate(current | changes)
