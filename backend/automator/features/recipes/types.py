"""
Recipe (automation rule) data types.

Conditions and actions are opaque here; the recipe engine owns their
semantics and this service only summarizes them for record keeping.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class RecipeCondition:
    property: str
    operator: str
    value: Any = None


@dataclass
class RecipeAction:
    type: str
    value: Any = None


@dataclass
class Recipe:
    """User defined automation rule."""
    id: str
    title: str
    order: Optional[int] = None
    default_for: Optional[str] = None
    kill_switch: bool = False
    conditions: list[RecipeCondition] = field(default_factory=list)
    actions: list[RecipeAction] = field(default_factory=list)

    def sort_key(self) -> tuple:
        """Defaults first, then by explicit order, then by title."""
        return (
            self.default_for is None,
            self.default_for or "",
            self.order is None,
            self.order or 0,
            self.title or "",
        )
