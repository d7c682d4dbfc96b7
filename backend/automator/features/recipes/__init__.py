"""
Recipes module.

Usage:
    from automator.features.recipes import Recipe, RecipeEngine
"""

from .types import Recipe, RecipeAction, RecipeCondition
from .engine import RecipeEngine

__all__ = [
    "Recipe",
    "RecipeAction",
    "RecipeCondition",
    "RecipeEngine",
]
