"""
DietCoach planner API.

Application factory plus a Blueprint holding every route. The provider
clients (OpenAI, Edamam) are built in create_app() so tests can inject fakes
instead of patching module globals.
"""

import json
from datetime import date

from flask import Blueprint, Flask, current_app, jsonify, request
from flask_migrate import Migrate
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from config import get_config
from models import db, Recipe, MacroProfile, UserPreferences, WeeklyIntent, MealPlan, Meal
from schemas import (
    GeneratePlanRequest, MacroProfileIn, PreferencesIn, WeeklyIntentIn,
    RecipeIn, MealPlanIn, MealIn,
)
from services import repository
from services.ai_planner import AIPlanGenerator
from services.edamam import (
    EdamamClient, RecipeSearchService, SearchCache, external_recipe_to_dict,
)
from services.errors import MealPlannerError, InvalidInput, MissingConfiguration
from services.matching import MatcherSettings
from services.planner import calories_from_macros, generate_week_plan
from utils.logging_utils import get_logger, setup_logging
from utils.sanitizer import (
    sanitize_instructions, sanitize_recipe_name, sanitize_text, sanitize_url,
)

logger = get_logger(__name__)

api = Blueprint('api', __name__)


# ============================================
# APPLICATION FACTORY
# ============================================

def _build_openai_client(config):
    """OpenAI client from config, or None when no API key is set."""
    if not config.get('OPENAI_API_KEY'):
        return None
    from openai import OpenAI
    # AIPlanGenerator owns the retry policy; the SDK must not retry underneath it
    return OpenAI(api_key=config['OPENAI_API_KEY'], max_retries=0)


def create_app(config_name=None, openai_client=None, recipe_search=None, plan_generator=None):
    """
    Build the Flask app.

    Provider collaborators can be injected (tests pass fakes); otherwise they
    are built from config.
    """
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    setup_logging(app.config.get('LOG_LEVEL'))

    db.init_app(app)
    Migrate(app, db)

    if recipe_search is None:
        client = EdamamClient(
            app.config['EDAMAM_APP_ID'],
            app.config['EDAMAM_APP_KEY'],
            account_user=app.config.get('EDAMAM_ACCOUNT_USER') or None,
            base_url=app.config['EDAMAM_BASE_URL'],
            timeout=app.config['EDAMAM_TIMEOUT'],
        )
        cache = SearchCache(
            ttl_seconds=app.config['SEARCH_CACHE_TTL'],
            max_entries=app.config['SEARCH_CACHE_MAX_ENTRIES'],
        )
        recipe_search = RecipeSearchService(client, cache)

    if plan_generator is None:
        client = openai_client if openai_client is not None else _build_openai_client(app.config)
        if client is not None:
            plan_generator = AIPlanGenerator.from_config(client, app.config)

    app.extensions['recipe_search'] = recipe_search
    app.extensions['plan_generator'] = plan_generator
    app.extensions['matcher_settings'] = MatcherSettings.from_config(app.config)

    app.register_blueprint(api)
    register_error_handlers(app)
    return app


def _parse_body(schema):
    body = request.get_json(silent=True)
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise InvalidInput('Request body must be a JSON object')
    return schema.model_validate(body)


def _parse_id(value, label='id'):
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise InvalidInput(f'Invalid {label}')
    if parsed < 1:
        raise InvalidInput(f'Invalid {label}')
    return parsed


def _generate_request():
    body = request.get_json(silent=True) or {}
    if not isinstance(body, dict):
        raise InvalidInput('Request body must be a JSON object')
    body = dict(body)
    if 'mealsPerDay' not in body and 'meals_per_day' not in body:
        body['mealsPerDay'] = current_app.config['DEFAULT_MEALS_PER_DAY']
    return GeneratePlanRequest.model_validate(body)


# ============================================
# ROUTES - HEALTH
# ============================================

@api.route('/')
def index():
    return jsonify({'message': 'DietCoach AI server is running'})


# ============================================
# ROUTES - PLAN GENERATION
# ============================================

@api.route('/generate-week', methods=['POST'])
def generate_week():
    """Deterministic plan from the local recipe pool."""
    params = _generate_request()
    plan = generate_week_plan(
        params.week_start or date.today(),
        params.meals_per_day,
        settings=current_app.extensions['matcher_settings'],
        intent_policy=current_app.config['WEEKLY_INTENT_POLICY'],
    )
    return jsonify(plan.to_dict()), 201


@api.route('/api/ai/mealplan/generate', methods=['POST'])
def generate_ai_meal_plan():
    """AI generated plan; same request and response shape as /generate-week."""
    params = _generate_request()
    generator = current_app.extensions.get('plan_generator')
    if generator is None:
        raise MissingConfiguration('OpenAI API key is not configured')

    plan = generator.generate(
        params.week_start,
        params.meals_per_day,
        intent_policy=current_app.config['WEEKLY_INTENT_POLICY'],
    )
    return jsonify(plan.to_dict()), 201


@api.route('/api/ai/mealplan/<plan_id>')
def get_ai_meal_plan(plan_id):
    plan = repository.get_meal_plan(_parse_id(plan_id, 'meal plan ID'))
    return jsonify(plan.to_dict())


# ============================================
# ROUTES - EXTERNAL RECIPE SEARCH
# ============================================

@api.route('/api/recipes/search')
def search_external_recipes():
    query = request.args.get('q') or request.args.get('query')
    result = current_app.extensions['recipe_search'].search(query, request.args.get('limit'))

    response = jsonify([external_recipe_to_dict(r) for r in result.recipes])
    response.headers['X-External-Api-Status'] = result.status
    return response


@api.route('/api/recipes/import', methods=['POST'])
def import_external_recipes():
    """Search the external provider and add the hits to the local recipe pool."""
    body = request.get_json(silent=True) or {}
    if not isinstance(body, dict):
        raise InvalidInput('Request body must be a JSON object')

    result = current_app.extensions['recipe_search'].search(
        body.get('q') or body.get('query'), body.get('limit'),
    )
    created, skipped = repository.save_external_recipes(result.recipes)
    if created:
        logger.info("Imported %d external recipes (%d already stored)", len(created), len(skipped))

    response = jsonify({
        'created': [r.to_dict() for r in created],
        'skipped': len(skipped),
    })
    response.headers['X-External-Api-Status'] = result.status
    return response, 201 if created else 200


# ============================================
# ROUTES - MACRO PROFILE
# ============================================

@api.route('/macro-profile', methods=['GET'])
def get_macro_profile():
    profile = repository.get_macro_profile()
    return jsonify(profile.to_dict() if profile else None)


@api.route('/macro-profile', methods=['POST'])
def create_macro_profile():
    data = _parse_body(MacroProfileIn)
    profile = MacroProfile(**data.model_dump())
    db.session.add(profile)
    db.session.commit()
    return jsonify(profile.to_dict()), 201


# ============================================
# ROUTES - PREFERENCES
# ============================================

@api.route('/preferences', methods=['GET'])
def get_preferences():
    preferences = repository.get_preferences()
    return jsonify(preferences.to_dict() if preferences else None)


@api.route('/preferences', methods=['POST'])
def save_preferences():
    """Create the preferences record, or update the existing one."""
    data = _parse_body(PreferencesIn).model_dump(exclude_unset=True)
    for key in ('satiety_level', 'cooking_effort'):
        if key in data and data[key] is not None:
            data[key] = sanitize_text(data[key], max_length=20).lower()

    existing = repository.get_preferences()
    if existing:
        for key, value in data.items():
            setattr(existing, key, value if value is not None else '')
        db.session.commit()
        return jsonify(existing.to_dict())

    preferences = UserPreferences(**{k: v for k, v in data.items() if v is not None})
    db.session.add(preferences)
    db.session.commit()
    return jsonify(preferences.to_dict()), 201


# ============================================
# ROUTES - WEEKLY INTENT
# ============================================

@api.route('/weekly-intent', methods=['GET'])
def get_weekly_intent():
    intent = repository.get_latest_weekly_intent()
    return jsonify(intent.to_dict() if intent else None)


@api.route('/weekly-intent', methods=['POST'])
def create_weekly_intent():
    data = _parse_body(WeeklyIntentIn)
    intent = WeeklyIntent(
        week_start=data.week_start,
        goal=sanitize_text(data.goal).lower(),
        notes=sanitize_text(data.notes) or None,
    )
    db.session.add(intent)
    db.session.commit()
    return jsonify(intent.to_dict()), 201


# ============================================
# ROUTES - RECIPES
# ============================================

@api.route('/recipes', methods=['GET'])
def list_recipes():
    return jsonify([r.to_dict() for r in repository.get_all_recipes()])


@api.route('/recipes', methods=['POST'])
def create_recipe():
    data = _parse_body(RecipeIn)
    calories = data.calories_per_serving
    if calories is None:
        calories = calories_from_macros(data.protein_per_serving, data.carbs_per_serving, data.fat_per_serving)

    recipe = Recipe(
        title=sanitize_recipe_name(data.title),
        ingredients=sanitize_text(data.ingredients, max_length=20000),
        instructions=sanitize_instructions(data.instructions),
        calories_per_serving=calories,
        protein_per_serving=data.protein_per_serving,
        carbs_per_serving=data.carbs_per_serving,
        fat_per_serving=data.fat_per_serving,
        meal_type=data.meal_type,
        tags=sanitize_text(data.tags, max_length=2000),
        source=data.source,
        servings=data.servings,
        external_id=data.external_id,
        source_url=sanitize_url(data.source_url) or None,
    )
    db.session.add(recipe)
    db.session.commit()
    return jsonify(recipe.to_dict()), 201


@api.route('/recipes/<int:recipe_id>')
def get_recipe(recipe_id):
    return jsonify(repository.get_recipe(recipe_id).to_dict())


# ============================================
# ROUTES - MEAL PLANS
# ============================================

@api.route('/meal-plans', methods=['GET'])
def list_meal_plans():
    return jsonify([p.to_dict(include_meals=False) for p in repository.list_meal_plans()])


@api.route('/meal-plans', methods=['POST'])
def create_meal_plan():
    """Create an empty plan header."""
    data = _parse_body(MealPlanIn)
    if data.week_end < data.week_start:
        raise InvalidInput('weekEnd must not be before weekStart')
    if data.weekly_intent_id is not None and db.session.get(WeeklyIntent, data.weekly_intent_id) is None:
        raise InvalidInput('weeklyIntentId does not exist')

    plan = MealPlan(
        week_start=data.week_start,
        week_end=data.week_end,
        goal=sanitize_text(data.goal),
        weekly_intent_id=data.weekly_intent_id,
    )
    db.session.add(plan)
    db.session.commit()
    return jsonify(plan.to_dict()), 201


@api.route('/meal-plans/<plan_id>')
def get_meal_plan(plan_id):
    plan = repository.get_meal_plan(_parse_id(plan_id, 'meal plan ID'))
    return jsonify(plan.to_dict())


@api.route('/meal-plans/<plan_id>/meals', methods=['POST'])
def add_meal(plan_id):
    plan = repository.get_meal_plan(_parse_id(plan_id, 'meal plan ID'))
    data = _parse_body(MealIn)
    if data.recipe_id is not None:
        repository.get_recipe(data.recipe_id)

    calories = data.calories
    if calories is None:
        calories = calories_from_macros(data.protein, data.carbs, data.fat)

    meal = Meal(
        meal_plan_id=plan.id,
        date=data.meal_date,
        position=data.position,
        type=data.type,
        protein=data.protein,
        carbs=data.carbs,
        fat=data.fat,
        calories=calories,
        recipe_id=data.recipe_id,
    )
    db.session.add(meal)
    db.session.commit()
    return jsonify(meal.to_dict()), 201


# ============================================
# ERROR HANDLING
# ============================================

def register_error_handlers(app):

    @app.errorhandler(MealPlannerError)
    def handle_planner_error(e):
        if e.status_code >= 500:
            logger.warning("%s: %s", type(e).__name__, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return jsonify({
            'error': 'Invalid request data',
            'details': json.loads(e.json(include_url=False)),
        }), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        if e.code == 404:
            return jsonify({'error': 'Endpoint not found'}), 404
        return jsonify({'error': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        db.session.rollback()
        logger.exception("Unhandled error")
        return jsonify({'error': 'Internal server error'}), 500


# ============================================
# INITIALIZE DATABASE
# ============================================

def init_db(app):
    with app.app_context():
        db.create_all()


if __name__ == '__main__':
    app = create_app()
    init_db(app)
    # host='0.0.0.0' allows access from other devices on the network
    app.run(host='0.0.0.0', port=5000, use_reloader=False)
