"""
Services Package

Business logic modules for the meal planning backend.
"""

from .errors import (
    MealPlannerError,
    InvalidInput,
    MissingConfiguration,
    ConstraintViolation,
    NotFound,
    UpstreamTransient,
    GenerationInvalid,
)

from .matching import (
    MatcherSettings,
    DEFAULT_MATCHER_SETTINGS,
    macro_distance,
    filter_candidates,
    score_recipe,
    select_recipe,
)

from .planner import (
    MealDraft,
    PlanDraft,
    parse_week_start,
    resolve_meal_slots,
    calories_from_macros,
    assemble_week,
    save_plan_draft,
    generate_week_plan,
)

from .edamam import (
    EdamamClient,
    SearchCache,
    SearchResult,
    RecipeSearchService,
    normalize_hit,
)

from .ai_planner import (
    AIPlanGenerator,
    build_prompt,
    parse_generated_plan,
    validate_exclusions,
    store_generated_plan,
)

__all__ = [
    # Errors
    'MealPlannerError',
    'InvalidInput',
    'MissingConfiguration',
    'ConstraintViolation',
    'NotFound',
    'UpstreamTransient',
    'GenerationInvalid',
    # Matching
    'MatcherSettings',
    'DEFAULT_MATCHER_SETTINGS',
    'macro_distance',
    'filter_candidates',
    'score_recipe',
    'select_recipe',
    # Planner
    'MealDraft',
    'PlanDraft',
    'parse_week_start',
    'resolve_meal_slots',
    'calories_from_macros',
    'assemble_week',
    'save_plan_draft',
    'generate_week_plan',
    # External search
    'EdamamClient',
    'SearchCache',
    'SearchResult',
    'RecipeSearchService',
    'normalize_hit',
    # AI generation
    'AIPlanGenerator',
    'build_prompt',
    'parse_generated_plan',
    'validate_exclusions',
    'store_generated_plan',
]
