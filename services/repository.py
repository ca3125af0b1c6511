"""
Repository Functions

Thin query helpers over the SQLAlchemy models. Plan generation reads its
configuration and recipe pool through these functions.
"""

from constants import (
    INTENT_POLICY_LATEST, INTENT_POLICY_ON_OR_BEFORE, VALID_INTENT_POLICIES,
)
from models import db, Recipe, MacroProfile, UserPreferences, WeeklyIntent, MealPlan

from .errors import InvalidInput, NotFound


# ============================================
# RECIPES
# ============================================

def get_all_recipes():
    """All recipes in id order."""
    return Recipe.query.order_by(Recipe.id).all()


def get_recipes_by_meal_type(meal_type):
    """Recipes for a slot, including recipes with no meal type (fit any slot)."""
    return Recipe.query.filter(
        db.or_(Recipe.meal_type == meal_type, Recipe.meal_type.is_(None))
    ).order_by(Recipe.id).all()


def get_recipe(recipe_id):
    recipe = db.session.get(Recipe, recipe_id)
    if recipe is None:
        raise NotFound('Recipe not found')
    return recipe


def find_recipe_by_title(title):
    """Case-insensitive exact title match, or None."""
    if not title:
        return None
    return Recipe.query.filter(
        db.func.lower(Recipe.title) == title.strip().lower()
    ).order_by(Recipe.id).first()


def create_recipe(**fields):
    """Add a recipe to the current session and flush it to get an id. Caller commits."""
    recipe = Recipe(**fields)
    db.session.add(recipe)
    db.session.flush()
    return recipe


def save_external_recipes(recipes):
    """
    Persist normalized external recipes, skipping ones already stored.

    De-duplicates by external_id first, then by title. Commits once; on any
    failure the whole batch is rolled back.

    Returns:
        (created, skipped) lists of Recipe objects
    """
    created, skipped = [], []
    try:
        for data in recipes:
            existing = None
            if data.get('external_id'):
                existing = Recipe.query.filter_by(external_id=data['external_id']).first()
            if existing is None:
                existing = find_recipe_by_title(data.get('title'))
            if existing is not None:
                skipped.append(existing)
                continue
            created.append(create_recipe(**data))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return created, skipped


# ============================================
# PROFILE / PREFERENCES / INTENT
# ============================================

def get_macro_profile():
    """The active macro profile: first by id."""
    return MacroProfile.query.order_by(MacroProfile.id).first()


def get_preferences():
    return UserPreferences.query.order_by(UserPreferences.id).first()


def get_latest_weekly_intent():
    return WeeklyIntent.query.order_by(WeeklyIntent.week_start.desc(), WeeklyIntent.id.desc()).first()


def get_weekly_intent(week_start, policy=INTENT_POLICY_ON_OR_BEFORE):
    """
    Resolve the WeeklyIntent a generation run should use.

    Policies:
        latest_on_or_before - most recent intent whose week_start <= week_start
        latest              - most recent intent overall
    """
    if policy not in VALID_INTENT_POLICIES:
        raise InvalidInput(f'Unknown weekly intent policy: {policy}')

    if policy == INTENT_POLICY_LATEST or week_start is None:
        return get_latest_weekly_intent()

    return WeeklyIntent.query.filter(
        WeeklyIntent.week_start <= week_start
    ).order_by(WeeklyIntent.week_start.desc(), WeeklyIntent.id.desc()).first()


# ============================================
# MEAL PLANS
# ============================================

def get_meal_plan(plan_id):
    plan = db.session.get(MealPlan, plan_id)
    if plan is None:
        raise NotFound('Meal plan not found')
    return plan


def list_meal_plans(limit=10):
    return MealPlan.query.order_by(MealPlan.week_start.desc(), MealPlan.id.desc()).limit(limit).all()
