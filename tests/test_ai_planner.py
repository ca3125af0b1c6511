"""
Tests for the AI plan generator.

The OpenAI client is a fake replaying queued responses; backoff sleeps are
recorded instead of slept.
"""

import json

import openai
import pytest

from app import _build_openai_client

from models import db, Meal, MealPlan, Recipe, UserPreferences, WeeklyIntent
from services.ai_planner import (
    AIPlanGenerator, build_prompt, parse_generated_plan, validate_exclusions,
)
from services.errors import (
    ConstraintViolation, GenerationInvalid, MissingConfiguration, UpstreamTransient,
)

from conftest import (
    FakeOpenAI, add_all, authentication_error, build_plan_payload, connection_error,
    make_profile, make_recipe, rate_limit_error,
)


def queue(client, *responses):
    client.completions.responses.extend(responses)


class TestParseGeneratedPlan:

    def test_valid_plan(self):
        plan = parse_generated_plan(build_plan_payload(4), 4)
        assert [d.day_number for d in plan.days] == list(range(1, 8))
        assert [m.meal_type for m in plan.days[0].meals] == ['breakfast', 'lunch', 'snack', 'dinner']

    def test_meals_and_days_reordered(self):
        payload = build_plan_payload(3)
        payload['days'].reverse()
        payload['days'][0]['meals'].reverse()
        plan = parse_generated_plan(payload, 3)
        assert plan.days[0].day_number == 1
        assert [m.meal_type for m in plan.days[-1].meals] == ['breakfast', 'lunch', 'dinner']

    def test_meal_type_case_insensitive(self):
        payload = build_plan_payload(3)
        payload['days'][0]['meals'][0]['mealType'] = 'Breakfast'
        plan = parse_generated_plan(payload, 3)
        assert plan.days[0].meals[0].meal_type == 'breakfast'

    def test_missing_day(self):
        payload = build_plan_payload(4)
        payload['days'].pop()
        with pytest.raises(GenerationInvalid):
            parse_generated_plan(payload, 4)

    def test_duplicate_day(self):
        payload = build_plan_payload(4)
        payload['days'][6]['dayNumber'] = 1
        with pytest.raises(GenerationInvalid):
            parse_generated_plan(payload, 4)

    def test_wrong_meal_count(self):
        with pytest.raises(GenerationInvalid):
            parse_generated_plan(build_plan_payload(4), 5)

    def test_unknown_meal_type(self):
        payload = build_plan_payload(3)
        payload['days'][0]['meals'][0]['mealType'] = 'brunch'
        with pytest.raises(GenerationInvalid) as exc:
            parse_generated_plan(payload, 3)
        assert exc.value.status_code == 502

    def test_missing_recipe_field(self):
        payload = build_plan_payload(3)
        del payload['days'][2]['meals'][1]['recipe']['title']
        with pytest.raises(GenerationInvalid) as exc:
            parse_generated_plan(payload, 3)
        assert 'details' in exc.value.to_dict()


class TestValidateExclusions:

    def test_violation(self):
        plan = parse_generated_plan(build_plan_payload(3, ingredients=['2 tbsp Peanut Butter', 'bread']), 3)
        with pytest.raises(ConstraintViolation) as exc:
            validate_exclusions(plan, 'peanut')
        body = exc.value.to_dict()
        assert 'peanut' in body['error']
        assert body['suggestion']
        assert exc.value.status_code == 400

    def test_clean_plan(self):
        plan = parse_generated_plan(build_plan_payload(3), 3)
        validate_exclusions(plan, 'peanut, shellfish')
        validate_exclusions(plan, '')


class TestBuildPrompt:

    def test_contents(self):
        preferences = UserPreferences(excluded_ingredients='Peanut, shellfish', preferred_cuisines='italian',
                                      cooking_effort='low')
        intent = WeeklyIntent(goal='lazy', notes='Busy week')
        prompt = build_prompt(make_profile(), preferences, intent, 3)

        assert '3 meals per day' in prompt
        assert 'peanut, shellfish' in prompt
        assert 'italian' in prompt
        assert 'Keep recipes simple' in prompt
        assert 'Busy week' in prompt
        # breakfast 30/50/15 + lunch 40/60/20 + dinner 45/55/20
        assert 'Protein: 115g' in prompt
        assert '- snack:' not in prompt

    def test_without_preferences_or_intent(self):
        prompt = build_prompt(make_profile(), None, None, 4)
        assert 'MUST NOT use): none' in prompt
        assert '- snack:' in prompt


class TestGenerate:

    def test_stores_plan(self, app, profile, openai_client, week_start):
        queue(openai_client, build_plan_payload(4))
        generator = app.extensions['plan_generator']

        plan = generator.generate(week_start, 4)

        assert len(plan.meals) == 28
        assert plan.goal == 'normal'
        assert Recipe.query.count() == 4
        assert {r.source for r in Recipe.query.all()} == {'openai'}
        assert {r.servings for r in Recipe.query.all()} == {1}

        breakfast = plan.meals[0]
        assert breakfast.type == 'breakfast'
        assert (breakfast.protein, breakfast.carbs, breakfast.fat) == (30, 50, 15)
        assert breakfast.calories == 450
        assert breakfast.recipe.title == 'Oat Porridge'
        assert breakfast.recipe.ingredients == '100g oats, 200ml milk'

    def test_request_arguments(self, app, profile, openai_client, week_start):
        queue(openai_client, build_plan_payload(4))
        app.extensions['plan_generator'].generate(week_start, 4)

        call = openai_client.calls[0]
        assert call['response_format'] == {'type': 'json_object'}
        assert call['model'] == 'gpt-4o-mini'
        assert call['messages'][0]['role'] == 'system'

    def test_uses_weekly_intent(self, app, profile, openai_client, week_start):
        intent, = add_all(WeeklyIntent(week_start=week_start, goal='gourmet'))
        queue(openai_client, build_plan_payload(3))
        plan = app.extensions['plan_generator'].generate(week_start, 3)
        assert plan.goal == 'gourmet'
        assert plan.weekly_intent_id == intent.id
        assert 'restaurant-quality' in openai_client.calls[0]['messages'][1]['content']

    def test_reuses_existing_recipe_case_insensitive(self, app, profile, openai_client, week_start):
        existing, = add_all(make_recipe('oat porridge', 20, 40, 10, meal_type='breakfast'))
        payload = build_plan_payload(4)
        payload['days'][1]['meals'][1]['recipe']['title'] = 'CHICKEN SALAD'
        queue(openai_client, payload)

        plan = app.extensions['plan_generator'].generate(week_start, 4)

        assert Recipe.query.count() == 4
        breakfasts = [m for m in plan.meals if m.type == 'breakfast']
        assert {m.recipe_id for m in breakfasts} == {existing.id}
        assert breakfasts[0].calories == existing.calories_per_serving
        lunches = [m for m in plan.meals if m.type == 'lunch']
        assert len({m.recipe_id for m in lunches}) == 1

    def test_code_fenced_json(self, app, profile, openai_client, week_start):
        queue(openai_client, '```json\n' + json.dumps(build_plan_payload(3)) + '\n```')
        plan = app.extensions['plan_generator'].generate(week_start, 3)
        assert len(plan.meals) == 21

    def test_invalid_json(self, app, profile, openai_client, week_start):
        queue(openai_client, 'Here is your plan!')
        with pytest.raises(GenerationInvalid):
            app.extensions['plan_generator'].generate(week_start, 3)
        assert MealPlan.query.count() == 0

    def test_exclusion_violation_persists_nothing(self, app, profile, openai_client, week_start):
        add_all(UserPreferences(excluded_ingredients='peanut'))
        queue(openai_client, build_plan_payload(4, ingredients=['bread', '2 tbsp peanut butter']))

        with pytest.raises(ConstraintViolation):
            app.extensions['plan_generator'].generate(week_start, 4)

        assert MealPlan.query.count() == 0
        assert Meal.query.count() == 0
        assert Recipe.query.count() == 0

    def test_reused_recipe_with_excluded_ingredient(self, app, profile, openai_client, week_start):
        stored, _ = add_all(
            make_recipe('Oat Porridge', 20, 40, 10, meal_type='breakfast', ingredients='oats, peanut butter'),
            UserPreferences(excluded_ingredients='peanut'),
        )
        queue(openai_client, build_plan_payload(4))

        with pytest.raises(ConstraintViolation) as exc:
            app.extensions['plan_generator'].generate(week_start, 4)

        assert 'peanut' in exc.value.message
        db.session.expire_all()
        assert MealPlan.query.count() == 0
        assert Meal.query.count() == 0
        assert Recipe.query.all() == [stored]

    def test_reused_recipe_without_excluded_ingredient(self, app, profile, openai_client, week_start):
        stored, _ = add_all(
            make_recipe('Oat Porridge', 20, 40, 10, meal_type='breakfast', ingredients='oats, honey'),
            UserPreferences(excluded_ingredients='peanut'),
        )
        queue(openai_client, build_plan_payload(4))

        plan = app.extensions['plan_generator'].generate(week_start, 4)

        assert {m.recipe_id for m in plan.meals if m.type == 'breakfast'} == {stored.id}

    def test_missing_profile(self, app, openai_client, week_start):
        with pytest.raises(MissingConfiguration):
            app.extensions['plan_generator'].generate(week_start, 4)
        assert openai_client.calls == []

    def test_store_failure_rolls_back(self, app, profile, openai_client, week_start, monkeypatch):
        queue(openai_client, build_plan_payload(3))

        def explode(**fields):
            raise RuntimeError('disk full')

        monkeypatch.setattr('services.repository.create_recipe', explode)
        with pytest.raises(RuntimeError):
            app.extensions['plan_generator'].generate(week_start, 3)

        db.session.expire_all()
        assert MealPlan.query.count() == 0


class TestRetry:

    def test_retries_then_succeeds(self, app, profile, openai_client, sleep_recorder, week_start):
        queue(openai_client, rate_limit_error(), connection_error(), build_plan_payload(3))

        plan = app.extensions['plan_generator'].generate(week_start, 3)

        assert len(plan.meals) == 21
        assert len(openai_client.calls) == 3
        assert sleep_recorder.delays == [2.0, 4.0]

    def test_exhausted_attempts(self, app, profile, openai_client, sleep_recorder, week_start):
        queue(openai_client, rate_limit_error(), rate_limit_error(), rate_limit_error())

        with pytest.raises(UpstreamTransient) as exc:
            app.extensions['plan_generator'].generate(week_start, 3)

        assert exc.value.status_code == 503
        assert exc.value.to_dict()['retryAfter'] == 60
        assert len(openai_client.calls) == 3
        assert sleep_recorder.delays == [2.0, 4.0]
        assert MealPlan.query.count() == 0

    def test_other_errors_not_retried(self, app, profile, openai_client, sleep_recorder, week_start):
        queue(openai_client, authentication_error(), build_plan_payload(3))

        with pytest.raises(openai.AuthenticationError):
            app.extensions['plan_generator'].generate(week_start, 3)

        assert len(openai_client.calls) == 1
        assert sleep_recorder.delays == []

    def test_from_config(self, app):
        generator = AIPlanGenerator.from_config(FakeOpenAI(), app.config)
        assert generator.max_attempts == 3
        assert generator.backoff_base == 2.0
        assert generator.model == app.config['OPENAI_MODEL']

    def test_sdk_retries_disabled(self):
        client = _build_openai_client({'OPENAI_API_KEY': 'sk-test'})
        assert client.max_retries == 0
        assert _build_openai_client({'OPENAI_API_KEY': ''}) is None
