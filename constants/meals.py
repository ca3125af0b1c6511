"""
Meal Constants

Slot vocabulary, per-count slot layouts and nutrition factors used by the
week plan assembler and the AI prompt builder.
"""

BREAKFAST = 'breakfast'
LUNCH = 'lunch'
SNACK = 'snack'
DINNER = 'dinner'

MEAL_SLOTS = (BREAKFAST, LUNCH, SNACK, DINNER)

# Ordered slot list for each supported meals-per-day count
MEAL_SLOTS_BY_COUNT = {
    3: (BREAKFAST, LUNCH, DINNER),
    4: (BREAKFAST, LUNCH, SNACK, DINNER),
    5: (BREAKFAST, SNACK, LUNCH, SNACK, DINNER),
    6: (BREAKFAST, SNACK, LUNCH, SNACK, DINNER, SNACK),
}

MIN_MEALS_PER_DAY = 3
MAX_MEALS_PER_DAY = 6

DAYS_PER_WEEK = 7

# kcal per gram
CALORIES_PER_GRAM = {
    'protein': 4,
    'carbs': 4,
    'fat': 9,
}

DEFAULT_GOAL = 'normal'

HIGH_SATIETY = 'high'
HIGH_SATIETY_TAG = 'high_satiety'

# Prompt guidance for WeeklyIntent goals (AI path only)
GOAL_GUIDANCE = {
    'high_satiety_low_ferritin': (
        'Focus on high-fiber, high-protein meals with iron-rich ingredients '
        '(spinach, red meat, lentils). Prioritize meals that keep you full longer.'
    ),
    'lazy': 'Keep recipes simple and quick to prepare. Prefer meals with minimal cooking steps.',
    'gourmet': 'Create sophisticated, restaurant-quality meals with complex flavors and techniques.',
}

# Edamam mealType labels -> internal slot (None = fits any slot)
EDAMAM_MEAL_TYPES = {
    'breakfast': BREAKFAST,
    'brunch': BREAKFAST,
    'snack': SNACK,
    'teatime': SNACK,
    'lunch': LUNCH,
    'dinner': DINNER,
    'lunch/dinner': None,
}
