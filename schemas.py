"""
Request Schemas

pydantic models for the JSON request bodies accepted by the API. Field names
are snake_case in Python and camelCase on the wire.
"""

from datetime import date
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from constants import MAX_LENGTHS, MAX_MEALS_PER_DAY, MIN_MEALS_PER_DAY
from utils.normalization import join_list

MealType = Literal['breakfast', 'lunch', 'snack', 'dinner']
TextList = Optional[Union[str, List[str]]]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore')


def _as_text(value):
    return join_list(value) if value is not None else None


class GeneratePlanRequest(CamelModel):
    week_start: Optional[str] = None
    meals_per_day: int = Field(default=4, ge=MIN_MEALS_PER_DAY, le=MAX_MEALS_PER_DAY)


class MacroProfileIn(CamelModel):
    breakfast_protein: float = Field(default=0.0, ge=0)
    breakfast_carbs: float = Field(default=0.0, ge=0)
    breakfast_fat: float = Field(default=0.0, ge=0)
    lunch_protein: float = Field(default=0.0, ge=0)
    lunch_carbs: float = Field(default=0.0, ge=0)
    lunch_fat: float = Field(default=0.0, ge=0)
    snack_protein: float = Field(default=0.0, ge=0)
    snack_carbs: float = Field(default=0.0, ge=0)
    snack_fat: float = Field(default=0.0, ge=0)
    dinner_protein: float = Field(default=0.0, ge=0)
    dinner_carbs: float = Field(default=0.0, ge=0)
    dinner_fat: float = Field(default=0.0, ge=0)


class PreferencesIn(CamelModel):
    excluded_ingredients: TextList = None
    preferred_cuisines: TextList = None
    satiety_level: Optional[str] = None
    cooking_effort: Optional[str] = None
    required_tags: TextList = None
    preferred_tags: TextList = None
    avoided_tags: TextList = None

    @field_validator('excluded_ingredients', 'preferred_cuisines', 'required_tags',
                     'preferred_tags', 'avoided_tags')
    @classmethod
    def join_text_lists(cls, value):
        return _as_text(value)


class WeeklyIntentIn(CamelModel):
    week_start: date
    goal: str = Field(min_length=1, max_length=MAX_LENGTHS['goal'])
    notes: Optional[str] = Field(default=None, max_length=MAX_LENGTHS['notes'])


class RecipeIn(CamelModel):
    title: str = Field(min_length=1, max_length=MAX_LENGTHS['recipe_title'])
    ingredients: TextList = ''
    instructions: str = ''
    calories_per_serving: Optional[float] = Field(default=None, ge=0)
    protein_per_serving: float = Field(default=0.0, ge=0)
    carbs_per_serving: float = Field(default=0.0, ge=0)
    fat_per_serving: float = Field(default=0.0, ge=0)
    meal_type: Optional[MealType] = None
    tags: TextList = ''
    source: Literal['manual', 'openai', 'edamam'] = 'manual'
    servings: int = Field(default=1, ge=1, le=100)
    external_id: Optional[str] = None
    source_url: Optional[str] = None

    @field_validator('ingredients', 'tags')
    @classmethod
    def join_text_lists(cls, value):
        return _as_text(value) or ''

    @field_validator('meal_type', mode='before')
    @classmethod
    def blank_meal_type(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            return value or None
        return value


class MealPlanIn(CamelModel):
    week_start: date
    week_end: date
    goal: str = Field(min_length=1, max_length=MAX_LENGTHS['goal'])
    weekly_intent_id: Optional[int] = None


class MealIn(CamelModel):
    meal_date: date = Field(alias='date')
    type: MealType
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fat: float = Field(ge=0)
    calories: Optional[float] = Field(default=None, ge=0)
    recipe_id: Optional[int] = None
    position: int = Field(default=0, ge=0)
