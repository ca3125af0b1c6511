"""
Pytest Configuration and Fixtures
=================================

Provides shared fixtures for the test suite:
- Flask app on an in-memory SQLite database (TestingConfig)
- Fake OpenAI client returning canned chat completions
- Fake Edamam client returning canned hits
- Small factories for profiles, recipes and generated plan payloads

No fixture talks to a real provider.
"""

import json
from datetime import date
from types import SimpleNamespace

import httpx
import openai
import pytest

from app import create_app
from constants import MEAL_SLOTS_BY_COUNT
from models import db, MacroProfile, Recipe
from services.ai_planner import AIPlanGenerator
from services.edamam import RecipeSearchService, SearchCache
from services.errors import UpstreamTransient

OPENAI_URL = 'https://api.openai.com/v1/chat/completions'

SLOT_TITLES = {
    'breakfast': 'Oat Porridge',
    'lunch': 'Chicken Salad',
    'snack': 'Greek Yogurt',
    'dinner': 'Salmon Rice',
}


# =============================================================================
# Fakes
# =============================================================================

class FakeCompletions:
    """Stands in for ``client.chat.completions``; replays queued responses."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if not isinstance(item, str):
            item = json.dumps(item)
        message = SimpleNamespace(content=item)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:
    def __init__(self, *responses):
        self.completions = FakeCompletions(responses)
        self.chat = SimpleNamespace(completions=self.completions)

    @property
    def calls(self):
        return self.completions.calls


class FakeEdamamClient:
    """Returns queued hit lists, or raises queued errors, and counts calls."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def search(self, query, limit):
        self.calls.append((query, limit))
        item = self.results.pop(0) if self.results else []
        if isinstance(item, Exception):
            raise item
        return item[:limit]


class SleepRecorder:
    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


def rate_limit_error():
    request = httpx.Request('POST', OPENAI_URL)
    return openai.RateLimitError(
        'Rate limit exceeded', response=httpx.Response(429, request=request), body=None,
    )


def connection_error():
    return openai.APIConnectionError(request=httpx.Request('POST', OPENAI_URL))


def authentication_error():
    request = httpx.Request('POST', OPENAI_URL)
    return openai.AuthenticationError(
        'Invalid API key', response=httpx.Response(401, request=request), body=None,
    )


def upstream_error():
    return UpstreamTransient('Edamam search failed: 503 Server Error')


# =============================================================================
# Factories
# =============================================================================

def build_plan_payload(meals_per_day=4, titles=None, ingredients=None):
    """Valid AI plan payload: 7 days, one meal per slot, titles reused across days."""
    titles = titles or SLOT_TITLES
    days = []
    for day_number in range(1, 8):
        meals = []
        for slot in MEAL_SLOTS_BY_COUNT[meals_per_day]:
            meals.append({
                'name': titles[slot],
                'mealType': slot,
                'recipe': {
                    'title': titles[slot],
                    'ingredients': list(ingredients or ['100g oats', '200ml milk']),
                    'instructions': 'Step 1: Combine. Step 2: Serve.',
                    'calories': 450,
                    'protein': 30,
                    'carbs': 50,
                    'fats': 12,
                },
            })
        days.append({'dayNumber': day_number, 'meals': meals})
    return {'days': days}


def make_profile(**overrides):
    values = {
        'breakfast_protein': 30, 'breakfast_carbs': 50, 'breakfast_fat': 15,
        'lunch_protein': 40, 'lunch_carbs': 60, 'lunch_fat': 20,
        'snack_protein': 15, 'snack_carbs': 20, 'snack_fat': 5,
        'dinner_protein': 45, 'dinner_carbs': 55, 'dinner_fat': 20,
    }
    values.update(overrides)
    return MacroProfile(**values)


def make_recipe(title, protein, carbs, fat, meal_type=None, ingredients='', tags='', **extra):
    return Recipe(
        title=title,
        protein_per_serving=protein,
        carbs_per_serving=carbs,
        fat_per_serving=fat,
        meal_type=meal_type,
        ingredients=ingredients,
        tags=tags,
        **extra,
    )


def add_all(*objects):
    db.session.add_all(objects)
    db.session.commit()
    return objects


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def openai_client():
    return FakeOpenAI()


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def plan_generator(openai_client, sleep_recorder):
    return AIPlanGenerator(openai_client, max_attempts=3, backoff_base=2.0, sleep=sleep_recorder)


@pytest.fixture
def edamam_client():
    return FakeEdamamClient()


@pytest.fixture
def recipe_search(edamam_client):
    return RecipeSearchService(edamam_client, SearchCache(ttl_seconds=60, max_entries=10))


@pytest.fixture
def app(recipe_search, plan_generator):
    app = create_app('testing', recipe_search=recipe_search, plan_generator=plan_generator)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def profile(app):
    profile = make_profile()
    add_all(profile)
    return profile


@pytest.fixture
def week_start():
    return date(2024, 1, 1)

