"""
Recipe Matching Service

Picks the recipe closest to a meal slot's macro target.

Deterministic greedy nearest-neighbour over a small candidate pool:
filter by slot, exclusions and required tags, score by macro distance with
tag and satiety adjustments, keep the lowest score, and refuse the winner
when it is still too far from the target.
"""

import math
from dataclasses import dataclass

from constants import HIGH_SATIETY, HIGH_SATIETY_TAG, VALID_DISTANCE_METRICS
from utils.normalization import find_excluded, normalize_tags


@dataclass(frozen=True)
class MatcherSettings:
    """Scoring weights for select_recipe()."""
    distance_metric: str = 'euclidean'
    preferred_tag_bonus: float = 5.0
    avoided_tag_penalty: float = 5.0
    satiety_penalty: float = 10.0
    acceptance_threshold: float = 80.0

    def __post_init__(self):
        if self.distance_metric not in VALID_DISTANCE_METRICS:
            raise ValueError(f'Unknown distance metric: {self.distance_metric}')

    @classmethod
    def from_config(cls, config):
        """Build settings from a Flask config mapping."""
        return cls(
            distance_metric=config.get('MATCH_DISTANCE_METRIC', cls.distance_metric),
            preferred_tag_bonus=float(config.get('MATCH_PREFERRED_TAG_BONUS', cls.preferred_tag_bonus)),
            avoided_tag_penalty=float(config.get('MATCH_AVOIDED_TAG_PENALTY', cls.avoided_tag_penalty)),
            satiety_penalty=float(config.get('MATCH_SATIETY_PENALTY', cls.satiety_penalty)),
            acceptance_threshold=float(config.get('MATCH_ACCEPTANCE_THRESHOLD', cls.acceptance_threshold)),
        )


DEFAULT_MATCHER_SETTINGS = MatcherSettings()


def recipe_macros(recipe):
    """Per-serving (protein, carbs, fat), missing values read as 0."""
    return (
        recipe.protein_per_serving or 0.0,
        recipe.carbs_per_serving or 0.0,
        recipe.fat_per_serving or 0.0,
    )


def macro_distance(target, recipe, metric='euclidean'):
    """Distance between a MacroTarget and a recipe's per-serving macros."""
    deltas = [r - t for r, t in zip(recipe_macros(recipe), target.as_tuple())]
    if metric == 'manhattan':
        return sum(abs(d) for d in deltas)
    return math.sqrt(sum(d * d for d in deltas))


def filter_candidates(recipes, meal_type, excluded_ingredients=(), required_tags=()):
    """
    Build the candidate pool for a slot.

    Keeps input order. A recipe with no meal_type fits any slot; a recipe is
    dropped if any excluded term is a substring of any of its ingredients, or
    if it lacks one of the required tags.
    """
    required = set(normalize_tags(required_tags))
    candidates = []
    for recipe in recipes:
        if meal_type and recipe.meal_type and recipe.meal_type != meal_type:
            continue
        if find_excluded(recipe.ingredient_terms, excluded_ingredients):
            continue
        if required and not required.issubset(recipe.tag_set):
            continue
        candidates.append(recipe)
    return candidates


def score_recipe(recipe, target, preferred_tags=(), avoided_tags=(), satiety_level=None,
                 settings=DEFAULT_MATCHER_SETTINGS):
    """Lower is better."""
    tags = recipe.tag_set
    score = macro_distance(target, recipe, settings.distance_metric)

    score -= settings.preferred_tag_bonus * len(tags.intersection(normalize_tags(preferred_tags)))
    score += settings.avoided_tag_penalty * len(tags.intersection(normalize_tags(avoided_tags)))

    if satiety_level and satiety_level.strip().lower() == HIGH_SATIETY and HIGH_SATIETY_TAG not in tags:
        score += settings.satiety_penalty

    return score


def select_recipe(recipes, meal_type, target, excluded_ingredients=(), required_tags=(),
                  preferred_tags=(), avoided_tags=(), satiety_level=None,
                  settings=DEFAULT_MATCHER_SETTINGS):
    """
    Select the best recipe for one meal slot.

    Args:
        recipes: Recipe pool snapshot (not mutated)
        meal_type: Slot name ('breakfast', 'lunch', 'snack', 'dinner')
        target: MacroTarget for the slot
        excluded_ingredients: Terms that disqualify a recipe (substring match)
        required_tags: Tags a recipe must all carry
        preferred_tags: Each match lowers the score by settings.preferred_tag_bonus
        avoided_tags: Each match raises the score by settings.avoided_tag_penalty
        satiety_level: 'high' penalizes recipes without the high_satiety tag
        settings: MatcherSettings

    Returns:
        The lowest-scoring recipe (first seen wins ties), or None when the pool
        is empty or the best score is above settings.acceptance_threshold.
    """
    candidates = filter_candidates(recipes, meal_type, excluded_ingredients, required_tags)
    if not candidates:
        return None

    best = None
    best_score = math.inf
    for recipe in candidates:
        score = score_recipe(recipe, target, preferred_tags, avoided_tags, satiety_level, settings)
        if score < best_score:
            best = recipe
            best_score = score

    if best_score > settings.acceptance_threshold:
        return None

    return best
