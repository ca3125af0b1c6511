"""
Constants Package

Meal slot vocabulary, nutrition factors and validation whitelists.
"""

from .meals import (
    BREAKFAST, LUNCH, SNACK, DINNER, MEAL_SLOTS, MEAL_SLOTS_BY_COUNT,
    MIN_MEALS_PER_DAY, MAX_MEALS_PER_DAY, DAYS_PER_WEEK, CALORIES_PER_GRAM,
    DEFAULT_GOAL, HIGH_SATIETY, HIGH_SATIETY_TAG, GOAL_GUIDANCE, EDAMAM_MEAL_TYPES,
)

from .validation import (
    RECIPE_SOURCE_MANUAL, RECIPE_SOURCE_OPENAI, RECIPE_SOURCE_EDAMAM,
    VALID_RECIPE_SOURCES, VALID_MEAL_TYPES,
    INTENT_POLICY_LATEST, INTENT_POLICY_ON_OR_BEFORE, VALID_INTENT_POLICIES,
    VALID_DISTANCE_METRICS, DEFAULT_SEARCH_LIMIT, MAX_SEARCH_LIMIT, MAX_LENGTHS,
)
