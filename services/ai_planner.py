"""
AI Plan Generator

Asks an OpenAI chat model for a full week of meals, validates the answer,
re-checks the user's exclusions and stores the plan through the same
MealPlan/Meal/Recipe shape as the local assembler.

Flow:
    1. Load macro profile, preferences, weekly intent
    2. Build prompt
    3. Call the model (retry with exponential backoff on rate limits and
       connection errors only)
    4. Validate the JSON against the day/meal schema
    5. Reject the plan if any ingredient contains an excluded term
    6. Store header + meals + new recipes in one transaction
"""

import json
import time
from datetime import date, timedelta
from typing import List, Literal

import openai
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from constants import (
    DAYS_PER_WEEK, DEFAULT_GOAL, GOAL_GUIDANCE, INTENT_POLICY_ON_OR_BEFORE,
    MEAL_SLOTS, RECIPE_SOURCE_OPENAI,
)
from models import db, Meal, MealPlan
from utils.logging_utils import get_logger
from utils.normalization import find_excluded, join_list, parse_list
from utils.sanitizer import (
    sanitize_ingredient_text, sanitize_instructions, sanitize_recipe_name,
)

from . import repository
from .errors import ConstraintViolation, GenerationInvalid, MissingConfiguration, UpstreamTransient
from .planner import calories_from_macros, parse_week_start, resolve_meal_slots

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    'You are a professional nutritionist. Generate meal plans as valid JSON only. '
    'Be precise with macro calculations.'
)


# ============================================
# RESPONSE SCHEMA
# ============================================

class GeneratedRecipe(BaseModel):
    title: str = Field(min_length=1)
    ingredients: List[str]
    instructions: str
    calories: float = Field(ge=0)
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fats: float = Field(ge=0)


class GeneratedMeal(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = ''
    meal_type: Literal['breakfast', 'lunch', 'snack', 'dinner'] = Field(alias='mealType')
    recipe: GeneratedRecipe

    @field_validator('meal_type', mode='before')
    @classmethod
    def lowercase_meal_type(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class GeneratedDay(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day_number: int = Field(alias='dayNumber', ge=1, le=DAYS_PER_WEEK)
    meals: List[GeneratedMeal]


class GeneratedPlan(BaseModel):
    days: List[GeneratedDay]


def parse_generated_plan(payload, meals_per_day):
    """
    Validate a decoded model response.

    Besides the field schema, the plan must cover day numbers 1-7 exactly once
    and each day's meal types must be the slots for ``meals_per_day``. Meals
    are reordered to follow the slot order.

    Raises:
        GenerationInvalid: the response does not fit the schema
    """
    try:
        plan = GeneratedPlan.model_validate(payload)
    except ValidationError as e:
        raise GenerationInvalid('AI response did not match the meal plan schema',
                                details=json.loads(e.json(include_url=False))) from e

    day_numbers = sorted(day.day_number for day in plan.days)
    if day_numbers != list(range(1, DAYS_PER_WEEK + 1)):
        raise GenerationInvalid(f'AI response must contain days 1-{DAYS_PER_WEEK} exactly once',
                                dayNumbers=day_numbers)

    slots = resolve_meal_slots(meals_per_day)
    for day in plan.days:
        types = sorted(meal.meal_type for meal in day.meals)
        if types != sorted(slots):
            raise GenerationInvalid(
                f'Day {day.day_number} must contain meals {", ".join(slots)}',
                mealTypes=[meal.meal_type for meal in day.meals],
            )
        remaining = list(day.meals)
        ordered = []
        for slot in slots:
            meal = next(m for m in remaining if m.meal_type == slot)
            remaining.remove(meal)
            ordered.append(meal)
        day.meals = ordered

    plan.days.sort(key=lambda d: d.day_number)
    return plan


def validate_exclusions(plan, excluded_ingredients):
    """Raise ConstraintViolation if any recipe contains an excluded term (substring match)."""
    if not parse_list(excluded_ingredients):
        return

    for day in plan.days:
        for meal in day.meals:
            term = find_excluded(meal.recipe.ingredients, excluded_ingredients)
            if term:
                raise ConstraintViolation(
                    f'Excluded ingredient "{term}" found in recipe "{meal.recipe.title}". '
                    'Please regenerate the meal plan.'
                )


# ============================================
# PROMPT
# ============================================

def build_prompt(macro_profile, preferences, weekly_intent, meals_per_day):
    """Render the generation prompt for the configured profile and slots."""
    slots = resolve_meal_slots(meals_per_day)
    targets = [(slot, macro_profile.target_for(slot)) for slot in slots]

    total_protein = sum(t.protein for _, t in targets)
    total_carbs = sum(t.carbs for _, t in targets)
    total_fats = sum(t.fat for _, t in targets)
    total_calories = calories_from_macros(total_protein, total_carbs, total_fats)

    distribution = '\n'.join(
        f'- {slot}: protein {t.protein:g}g, carbs {t.carbs:g}g, fats {t.fat:g}g '
        f'(~{calories_from_macros(t.protein, t.carbs, t.fat):g} kcal)'
        for slot, t in targets
    )

    exclusions = ', '.join(preferences.excluded_terms) if preferences else ''
    cuisines = ', '.join(parse_list(preferences.preferred_cuisines)) if preferences else ''
    effort = preferences.cooking_effort if preferences and preferences.cooking_effort else 'any'

    guidance = ''
    if weekly_intent is not None:
        guidance = GOAL_GUIDANCE.get(weekly_intent.goal, '')
        if weekly_intent.notes:
            guidance = f'{guidance}\nNotes: {weekly_intent.notes}'.strip()

    return f"""Generate a complete {DAYS_PER_WEEK}-day meal plan with {meals_per_day} meals per day.

TARGET MACROS PER DAY:
- Calories: {total_calories:g} kcal
- Protein: {total_protein:g}g
- Carbohydrates: {total_carbs:g}g
- Fats: {total_fats:g}g

MEAL DISTRIBUTION (mealType for each meal of the day, in order):
{distribution}

DIETARY REQUIREMENTS:
- EXCLUDED ingredients (MUST NOT use): {exclusions or 'none'}
- Preferred cuisines: {cuisines or 'any cuisine'}
- Cooking effort: {effort}

SPECIAL INSTRUCTIONS:
{guidance or 'none'}

IMPORTANT RULES:
1. Each meal MUST include exact ingredient quantities
2. Calculate macros accurately for each recipe
3. Daily totals should be within +/-15% of target macros
4. Never use excluded ingredients
5. Provide clear, step-by-step cooking instructions
6. mealType must be one of: {', '.join(MEAL_SLOTS)}

Return ONLY valid JSON with this EXACT structure (no additional text):
{{
  "days": [
    {{
      "dayNumber": 1,
      "meals": [
        {{
          "name": "Meal name",
          "mealType": "breakfast",
          "recipe": {{
            "title": "Recipe Name",
            "ingredients": ["200g ingredient 1", "100g ingredient 2"],
            "instructions": "Step 1: Do this. Step 2: Do that.",
            "calories": 500,
            "protein": 30,
            "carbs": 50,
            "fats": 15
          }}
        }}
      ]
    }}
  ]
}}"""


def _clean_json_response(content):
    """Strip markdown code fences the model sometimes wraps JSON in."""
    cleaned = (content or '').strip()
    if cleaned.startswith('```'):
        lines = cleaned.split('\n')[1:]
        if lines and lines[-1].strip() == '```':
            lines = lines[:-1]
        cleaned = '\n'.join(lines)
    return cleaned


# ============================================
# STORAGE
# ============================================

def store_generated_plan(week_start, plan, macro_profile, weekly_intent, excluded_ingredients=()):
    """
    Persist a validated GeneratedPlan.

    Recipes are reused when a recipe with the same title (case-insensitive)
    already exists, including one created earlier in the same plan. A reused
    stored recipe must also pass ``excluded_ingredients`` on its own stored
    ingredients. Meal macros record the
    slot target; calories come from the assigned recipe. Everything is
    committed together or rolled back together.

    Raises:
        ConstraintViolation: a reused recipe contains an excluded term
    """
    try:
        meal_plan = MealPlan(
            week_start=week_start,
            week_end=week_start + timedelta(days=DAYS_PER_WEEK - 1),
            goal=weekly_intent.goal if weekly_intent and weekly_intent.goal else DEFAULT_GOAL,
            weekly_intent_id=weekly_intent.id if weekly_intent else None,
        )
        db.session.add(meal_plan)
        db.session.flush()

        created = 0
        for day in plan.days:
            meal_date = week_start + timedelta(days=day.day_number - 1)
            for position, meal in enumerate(day.meals):
                generated = meal.recipe
                title = sanitize_recipe_name(generated.title)
                recipe = repository.find_recipe_by_title(title)
                if recipe is not None:
                    term = find_excluded(recipe.ingredient_terms, excluded_ingredients)
                    if term:
                        raise ConstraintViolation(
                            f'Excluded ingredient "{term}" found in stored recipe "{recipe.title}". '
                            'Please regenerate the meal plan.'
                        )
                else:
                    recipe = repository.create_recipe(
                        title=title,
                        ingredients=join_list(sanitize_ingredient_text(i) for i in generated.ingredients),
                        instructions=sanitize_instructions(generated.instructions),
                        calories_per_serving=generated.calories,
                        protein_per_serving=generated.protein,
                        carbs_per_serving=generated.carbs,
                        fat_per_serving=generated.fats,
                        meal_type=meal.meal_type,
                        source=RECIPE_SOURCE_OPENAI,
                        servings=1,
                    )
                    created += 1

                target = macro_profile.target_for(meal.meal_type)
                db.session.add(Meal(
                    meal_plan_id=meal_plan.id,
                    date=meal_date,
                    position=position,
                    type=meal.meal_type,
                    protein=target.protein,
                    carbs=target.carbs,
                    fat=target.fat,
                    calories=recipe.calories_per_serving,
                    recipe_id=recipe.id,
                ))

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Stored AI plan %s for week %s (%d new recipes)", meal_plan.id, week_start.isoformat(), created)
    return meal_plan


# ============================================
# GENERATOR
# ============================================

class AIPlanGenerator:
    """
    Generates and stores meal plans through an OpenAI-compatible client.

    The client is injected so tests can pass a fake exposing
    ``chat.completions.create``.
    """

    RETRYABLE_ERRORS = (openai.RateLimitError, openai.APIConnectionError)

    def __init__(self, client, model='gpt-4o-mini', temperature=0.7, timeout=30,
                 max_attempts=3, backoff_base=2.0, sleep=time.sleep):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self.max_attempts = max(1, int(max_attempts))
        self.backoff_base = backoff_base
        self.sleep = sleep

    @classmethod
    def from_config(cls, client, config):
        return cls(
            client,
            model=config.get('OPENAI_MODEL', 'gpt-4o-mini'),
            temperature=config.get('OPENAI_TEMPERATURE', 0.7),
            timeout=config.get('OPENAI_TIMEOUT', 30),
            max_attempts=config.get('OPENAI_MAX_ATTEMPTS', 3),
            backoff_base=config.get('OPENAI_BACKOFF_BASE', 2.0),
        )

    def request_plan(self, prompt):
        """
        Call the model and decode its JSON answer.

        Rate limits and connection errors (timeouts included) are retried
        after backoff_base ** attempt seconds (2s, 4s, ...). Any other error
        propagates immediately.

        Raises:
            UpstreamTransient: retryable errors on every attempt
            GenerationInvalid: the answer is not JSON
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {'role': 'system', 'content': SYSTEM_PROMPT},
                        {'role': 'user', 'content': prompt},
                    ],
                    response_format={'type': 'json_object'},
                    temperature=self.temperature,
                    timeout=self.timeout,
                )
            except self.RETRYABLE_ERRORS as e:
                if attempt >= self.max_attempts:
                    raise UpstreamTransient(
                        'AI service temporarily unavailable due to rate limits or network errors'
                    ) from e
                delay = self.backoff_base ** attempt
                logger.warning(
                    "OpenAI request failed (%s), retrying in %.0fs (attempt %d/%d)",
                    type(e).__name__, delay, attempt, self.max_attempts,
                )
                self.sleep(delay)
                continue

            content = response.choices[0].message.content
            try:
                return json.loads(_clean_json_response(content))
            except (TypeError, ValueError) as e:
                raise GenerationInvalid('AI response was not valid JSON') from e

    def generate(self, week_start=None, meals_per_day=4, intent_policy=INTENT_POLICY_ON_OR_BEFORE):
        """
        Generate, validate and store a week plan.

        Args:
            week_start: date or 'YYYY-MM-DD'; defaults to today
            meals_per_day: 3-6
            intent_policy: weekly intent selection policy

        Returns:
            The persisted MealPlan
        """
        start = parse_week_start(week_start) if week_start else date.today()
        resolve_meal_slots(meals_per_day)

        macro_profile = repository.get_macro_profile()
        if macro_profile is None:
            raise MissingConfiguration('No MacroProfile found. Create one first with POST /macro-profile')
        preferences = repository.get_preferences()
        weekly_intent = repository.get_weekly_intent(start, intent_policy)

        prompt = build_prompt(macro_profile, preferences, weekly_intent, meals_per_day)
        payload = self.request_plan(prompt)

        plan = parse_generated_plan(payload, meals_per_day)
        excluded = preferences.excluded_terms if preferences else []
        validate_exclusions(plan, excluded)

        return store_generated_plan(start, plan, macro_profile, weekly_intent, excluded)
