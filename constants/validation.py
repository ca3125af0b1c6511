"""
Validation Constants

Contains whitelist values for validating user input and externally
generated data before it reaches the database.
"""

from .meals import MEAL_SLOTS

# Valid values for Recipe.source
RECIPE_SOURCE_MANUAL = 'manual'
RECIPE_SOURCE_OPENAI = 'openai'
RECIPE_SOURCE_EDAMAM = 'edamam'
VALID_RECIPE_SOURCES = {RECIPE_SOURCE_MANUAL, RECIPE_SOURCE_OPENAI, RECIPE_SOURCE_EDAMAM}

# Valid meal types for recipes and meals
VALID_MEAL_TYPES = set(MEAL_SLOTS)

# Valid weekly intent selection policies
INTENT_POLICY_LATEST = 'latest'
INTENT_POLICY_ON_OR_BEFORE = 'latest_on_or_before'
VALID_INTENT_POLICIES = {INTENT_POLICY_LATEST, INTENT_POLICY_ON_OR_BEFORE}

# Valid distance metrics for the recipe matcher
VALID_DISTANCE_METRICS = {'euclidean', 'manhattan'}

# Recipe search bounds
DEFAULT_SEARCH_LIMIT = 20
MAX_SEARCH_LIMIT = 100

# Maximum field lengths for security
MAX_LENGTHS = {
    'recipe_title': 200,
    'search_query': 200,
    'instructions': 50000,
    'ingredients': 20000,
    'tags': 2000,
    'source_url': 500,
    'goal': 100,
    'notes': 2000,
}
