"""
Recipe engine interface.

Evaluating a recipe may mutate the activity and append the names of
the changed fields to activity.updated_fields.
"""

from typing import Protocol, TYPE_CHECKING

from .types import RecipeAction, RecipeCondition

if TYPE_CHECKING:
    from automator.features.strava.types import Activity
    from automator.features.users.types import User


class RecipeEngine(Protocol):

    async def evaluate(self, user: "User", recipe_id: str, activity: "Activity") -> bool:
        """Apply the recipe to the activity, True if it fired."""
        ...

    def get_condition_summary(self, condition: RecipeCondition) -> str:
        ...

    def get_action_summary(self, action: RecipeAction) -> str:
        ...
