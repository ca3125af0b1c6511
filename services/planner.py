"""
Week Plan Assembler

Turns a macro profile and a week start date into a full week of meals.

assemble_week() is pure: it takes the configuration and a recipe pool
snapshot and returns an in-memory PlanDraft. save_plan_draft() writes the
draft (header + every meal) in one transaction. generate_week_plan() wires
the two together with the repository reads.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional

from constants import (
    CALORIES_PER_GRAM, DAYS_PER_WEEK, DEFAULT_GOAL, MEAL_SLOTS_BY_COUNT,
    MIN_MEALS_PER_DAY, MAX_MEALS_PER_DAY, INTENT_POLICY_ON_OR_BEFORE,
)
from models import db, MealPlan, Meal
from utils.logging_utils import get_logger

from . import repository
from .errors import InvalidInput, MissingConfiguration
from .matching import DEFAULT_MATCHER_SETTINGS, select_recipe

logger = get_logger(__name__)


@dataclass
class MealDraft:
    date: date
    position: int
    type: str
    protein: float
    carbs: float
    fat: float
    calories: float
    recipe_id: Optional[int] = None
    recipe: object = None


@dataclass
class PlanDraft:
    week_start: date
    week_end: date
    goal: str = DEFAULT_GOAL
    weekly_intent_id: Optional[int] = None
    meals: List[MealDraft] = field(default_factory=list)


def parse_week_start(value):
    """
    Parse a week start into a date.

    Accepts a date, an ISO 'YYYY-MM-DD' string or a full ISO datetime string
    (date part kept). Anything else, trailing garbage included, raises
    InvalidInput.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        if len(text) > 10 and text[10] in ('T', ' '):
            if text.endswith('Z'):
                text = text[:-1] + '+00:00'
            try:
                return datetime.fromisoformat(text).date()
            except ValueError:
                pass
    raise InvalidInput('Invalid date format. Use YYYY-MM-DD.')


def resolve_meal_slots(meals_per_day):
    """Ordered slot names for a meals-per-day count (3-6)."""
    if isinstance(meals_per_day, bool) or meals_per_day not in MEAL_SLOTS_BY_COUNT:
        raise InvalidInput(
            f'mealsPerDay must be between {MIN_MEALS_PER_DAY} and {MAX_MEALS_PER_DAY}'
        )
    return list(MEAL_SLOTS_BY_COUNT[meals_per_day])


def calories_from_macros(protein, carbs, fat):
    """4 kcal/g protein, 4 kcal/g carbs, 9 kcal/g fat."""
    return (
        protein * CALORIES_PER_GRAM['protein']
        + carbs * CALORIES_PER_GRAM['carbs']
        + fat * CALORIES_PER_GRAM['fat']
    )


def assemble_week(week_start, macro_profile, preferences, weekly_intent, meals_per_day, recipes,
                  settings=DEFAULT_MATCHER_SETTINGS):
    """
    Build an in-memory plan for 7 days x meals_per_day slots.

    Args:
        week_start: date or 'YYYY-MM-DD'
        macro_profile: MacroProfile (required)
        preferences: UserPreferences or None (None = no exclusions, no tag rules)
        weekly_intent: WeeklyIntent or None (None = goal 'normal')
        meals_per_day: 3-6
        recipes: Recipe pool snapshot
        settings: MatcherSettings

    Returns:
        PlanDraft with meals ordered by date then slot position

    Raises:
        InvalidInput: bad date or meals_per_day
        MissingConfiguration: no macro profile
    """
    start = parse_week_start(week_start)
    slots = resolve_meal_slots(meals_per_day)

    if macro_profile is None:
        raise MissingConfiguration('No MacroProfile found. Create one first with POST /macro-profile')

    excluded = preferences.excluded_terms if preferences else []
    required_tags = preferences.required_tags if preferences else ''
    preferred_tags = preferences.preferred_tags if preferences else ''
    avoided_tags = preferences.avoided_tags if preferences else ''
    satiety_level = preferences.satiety_level if preferences else None

    draft = PlanDraft(
        week_start=start,
        week_end=start + timedelta(days=DAYS_PER_WEEK - 1),
        goal=(weekly_intent.goal if weekly_intent and weekly_intent.goal else DEFAULT_GOAL),
        weekly_intent_id=weekly_intent.id if weekly_intent else None,
    )

    pool = list(recipes)
    targets = {slot: macro_profile.target_for(slot) for slot in set(slots)}

    for day_offset in range(DAYS_PER_WEEK):
        current_date = start + timedelta(days=day_offset)
        for position, slot in enumerate(slots):
            target = targets[slot]
            recipe = select_recipe(
                pool, slot, target,
                excluded_ingredients=excluded,
                required_tags=required_tags,
                preferred_tags=preferred_tags,
                avoided_tags=avoided_tags,
                satiety_level=satiety_level,
                settings=settings,
            )
            draft.meals.append(MealDraft(
                date=current_date,
                position=position,
                type=slot,
                protein=target.protein,
                carbs=target.carbs,
                fat=target.fat,
                calories=calories_from_macros(target.protein, target.carbs, target.fat),
                recipe_id=recipe.id if recipe is not None else None,
                recipe=recipe,
            ))

    return draft


def save_plan_draft(draft):
    """
    Persist a PlanDraft as one MealPlan with all its meals.

    Single transaction: on any failure the session is rolled back and the
    error re-raised, so neither the header nor any meal is left behind.
    """
    try:
        plan = MealPlan(
            week_start=draft.week_start,
            week_end=draft.week_end,
            goal=draft.goal,
            weekly_intent_id=draft.weekly_intent_id,
        )
        db.session.add(plan)
        db.session.flush()

        for meal in draft.meals:
            db.session.add(Meal(
                meal_plan_id=plan.id,
                date=meal.date,
                position=meal.position,
                type=meal.type,
                protein=meal.protein,
                carbs=meal.carbs,
                fat=meal.fat,
                calories=meal.calories,
                recipe_id=meal.recipe_id,
            ))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return plan


def generate_week_plan(week_start, meals_per_day, settings=DEFAULT_MATCHER_SETTINGS,
                       intent_policy=INTENT_POLICY_ON_OR_BEFORE):
    """Read configuration and recipes, assemble the week, persist it, return the MealPlan."""
    start = parse_week_start(week_start)
    resolve_meal_slots(meals_per_day)

    macro_profile = repository.get_macro_profile()
    if macro_profile is None:
        raise MissingConfiguration('No MacroProfile found. Create one first with POST /macro-profile')

    preferences = repository.get_preferences()
    weekly_intent = repository.get_weekly_intent(start, intent_policy)
    recipes = repository.get_all_recipes()

    draft = assemble_week(start, macro_profile, preferences, weekly_intent, meals_per_day, recipes, settings)
    plan = save_plan_draft(draft)

    matched = sum(1 for meal in draft.meals if meal.recipe_id is not None)
    logger.info(
        "Generated plan %s for week %s: %d meals, %d matched to recipes",
        plan.id, start.isoformat(), len(draft.meals), matched,
    )
    return plan
