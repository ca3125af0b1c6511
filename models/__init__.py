"""
Models Package

Exports all database models and the db instance for use throughout the application.
"""

from .base import db

from .recipe import Recipe
from .profile import MacroTarget, MacroProfile, UserPreferences, WeeklyIntent
from .mealplan import MealPlan, Meal

__all__ = [
    'db',
    'Recipe',
    'MacroTarget',
    'MacroProfile',
    'UserPreferences',
    'WeeklyIntent',
    'MealPlan',
    'Meal',
]
