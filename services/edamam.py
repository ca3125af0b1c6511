"""
External Recipe Search (Edamam)

Queries the Edamam Recipe Search API, normalizes hits into the internal
recipe shape and caches responses.

Search failures never reach the caller as errors: RecipeSearchService
returns an empty, degraded result instead.
"""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import List

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from constants import (
    DEFAULT_SEARCH_LIMIT, EDAMAM_MEAL_TYPES, MAX_LENGTHS, MAX_SEARCH_LIMIT,
    RECIPE_SOURCE_EDAMAM,
)
from utils.logging_utils import get_logger
from utils.normalization import join_list, normalize_tags
from utils.sanitizer import (
    sanitize_ingredient_text, sanitize_recipe_name, sanitize_url,
)

from .errors import InvalidInput, MissingConfiguration, UpstreamTransient

logger = get_logger(__name__)

DEFAULT_BASE_URL = 'https://api.edamam.com/api/recipes/v2'

# Edamam totalNutrients codes
NUTRIENT_CODES = {
    'protein': 'PROCNT',
    'carbs': 'CHOCDF',
    'fat': 'FAT',
}


class EdamamClient:
    """
    Minimal Edamam Recipe Search v2 client.

    Features:
    - HTTP connection pooling via requests.Session
    - Automatic retry with exponential backoff on 429/5xx
    - Fixed per-attempt timeout
    """

    RETRY_TOTAL = 2
    RETRY_BACKOFF_FACTOR = 0.5
    RETRY_STATUS_FORCELIST = [429, 500, 502, 503, 504]

    DEFAULT_TIMEOUT = 10

    def __init__(self, app_id, app_key, account_user=None, base_url=DEFAULT_BASE_URL,
                 timeout=DEFAULT_TIMEOUT, session=None):
        self.app_id = app_id
        self.app_key = app_key
        self.account_user = account_user
        self.base_url = base_url
        self.timeout = timeout

        if session is None:
            session = requests.Session()
            retry_strategy = Retry(
                total=self.RETRY_TOTAL,
                backoff_factor=self.RETRY_BACKOFF_FACTOR,
                status_forcelist=self.RETRY_STATUS_FORCELIST,
                allowed_methods=["GET"],
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            session.mount('http://', adapter)
            session.mount('https://', adapter)
        self.session = session

    @property
    def configured(self):
        return bool(self.app_id and self.app_key)

    def close(self):
        self.session.close()

    def search(self, query, limit=DEFAULT_SEARCH_LIMIT):
        """
        Run a recipe search and return the raw hits (at most ``limit``).

        Raises:
            MissingConfiguration: app id / key not set
            UpstreamTransient: network error, timeout or error status
        """
        if not self.configured:
            raise MissingConfiguration('Edamam credentials are not configured')

        params = {
            'type': 'public',
            'q': query,
            'app_id': self.app_id,
            'app_key': self.app_key,
        }
        headers = {'Accept': 'application/json'}
        if self.account_user:
            headers['Edamam-Account-User'] = self.account_user

        try:
            response = self.session.get(self.base_url, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            raise UpstreamTransient(f'Edamam search failed: {e}') from e

        if not isinstance(payload, dict):
            raise UpstreamTransient('Edamam search failed: response is not a JSON object')
        hits = payload.get('hits') or []
        if not isinstance(hits, list):
            raise UpstreamTransient('Edamam search failed: "hits" is not a list')

        return [hit for hit in hits if is_recipe_hit(hit)][:limit]


def is_recipe_hit(hit):
    """True for a hit dict whose recipe payload (if nested) is a dict."""
    if not isinstance(hit, dict):
        return False
    return isinstance(hit.get('recipe', hit), dict)


def _per_serving(total, servings):
    try:
        total = float(total or 0.0)
    except (TypeError, ValueError):
        total = 0.0
    return round(total / servings, 2)


def normalize_hit(hit):
    """
    Convert an Edamam hit into Recipe column values.

    Edamam reports totals for the whole recipe; per-serving values divide by
    the declared yield (a missing or non-positive yield counts as 1).
    """
    data = hit.get('recipe', hit) or {}

    try:
        servings = float(data.get('yield') or 0)
    except (TypeError, ValueError):
        servings = 0.0
    if servings <= 0:
        servings = 1.0

    nutrients = data.get('totalNutrients')
    if not isinstance(nutrients, dict):
        nutrients = {}

    def nutrient(key):
        entry = nutrients.get(NUTRIENT_CODES[key])
        if not isinstance(entry, dict):
            return 0.0
        try:
            return float(entry.get('quantity') or 0.0)
        except (TypeError, ValueError):
            return 0.0

    meal_type = None
    for label in data.get('mealType') or []:
        label = str(label).strip().lower()
        if label in EDAMAM_MEAL_TYPES:
            meal_type = EDAMAM_MEAL_TYPES[label]
            break

    tags = normalize_tags(
        list(data.get('dietLabels') or [])
        + list(data.get('healthLabels') or [])
        + list(data.get('cuisineType') or [])
        + list(data.get('dishType') or [])
    )

    uri = str(data.get('uri') or '')
    external_id = uri.rsplit('#recipe_', 1)[-1] if '#recipe_' in uri else (uri or None)

    return {
        'title': sanitize_recipe_name(data.get('label')),
        'ingredients': join_list(sanitize_ingredient_text(line) for line in data.get('ingredientLines') or []),
        'instructions': '',
        'calories_per_serving': _per_serving(data.get('calories'), servings),
        'protein_per_serving': _per_serving(nutrient('protein'), servings),
        'carbs_per_serving': _per_serving(nutrient('carbs'), servings),
        'fat_per_serving': _per_serving(nutrient('fat'), servings),
        'meal_type': meal_type,
        'tags': join_list(tags),
        'source': RECIPE_SOURCE_EDAMAM,
        'servings': int(round(servings)),
        'external_id': external_id,
        'source_url': sanitize_url(data.get('url')) or None,
    }


def external_recipe_to_dict(recipe):
    """API shape of a normalized (unsaved) external recipe."""
    return {
        'title': recipe['title'],
        'ingredients': recipe['ingredients'],
        'instructions': recipe['instructions'],
        'caloriesPerServing': recipe['calories_per_serving'],
        'proteinPerServing': recipe['protein_per_serving'],
        'carbsPerServing': recipe['carbs_per_serving'],
        'fatPerServing': recipe['fat_per_serving'],
        'mealType': recipe['meal_type'],
        'tags': normalize_tags(recipe['tags']),
        'source': recipe['source'],
        'servings': recipe['servings'],
        'externalId': recipe['external_id'],
        'sourceUrl': recipe['source_url'],
    }


@dataclass
class CacheEntry:
    value: list
    timestamp: float

    def is_expired(self, ttl_seconds, now):
        return now - self.timestamp > ttl_seconds


class SearchCache:
    """
    Thread-safe LRU cache with TTL expiry for search results.

    Keys are (query, limit). The least recently used entry is evicted once
    max_entries is reached.
    """

    def __init__(self, ttl_seconds=24 * 60 * 60, max_entries=1000, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.clock = clock
        self._entries = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def make_key(query, limit):
        return (query.strip().lower(), int(limit))

    def get(self, key):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self.ttl_seconds, self.clock()):
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return list(entry.value)

    def set(self, key, value):
        with self._lock:
            self._entries[key] = CacheEntry(value=list(value), timestamp=self.clock())
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self):
        return len(self._entries)


@dataclass
class SearchResult:
    recipes: List[dict] = field(default_factory=list)
    degraded: bool = False

    @property
    def status(self):
        return 'degraded' if self.degraded else 'ok'


def validate_search_params(query, limit=None):
    """Check the query and limit; returns (query, limit). Raises InvalidInput."""
    query = (query or '').strip()
    if not query:
        raise InvalidInput('Query parameter is required')
    if len(query) > MAX_LENGTHS['search_query']:
        raise InvalidInput(f"Query must be at most {MAX_LENGTHS['search_query']} characters")

    if limit is None or limit == '':
        limit = DEFAULT_SEARCH_LIMIT
    try:
        limit = int(limit)
    except (TypeError, ValueError):
        raise InvalidInput('limit must be an integer')
    if not 1 <= limit <= MAX_SEARCH_LIMIT:
        raise InvalidInput(f'limit must be between 1 and {MAX_SEARCH_LIMIT}')

    return query, limit


class RecipeSearchService:
    """Cached, failure-tolerant front for an EdamamClient."""

    def __init__(self, client, cache=None):
        self.client = client
        self.cache = cache if cache is not None else SearchCache()

    def search(self, query, limit=None):
        """
        Search external recipes.

        Returns:
            SearchResult; degraded=True with no recipes when the provider is
            unavailable or not configured.

        Raises:
            InvalidInput: empty/oversized query or bad limit
        """
        query, limit = validate_search_params(query, limit)
        key = SearchCache.make_key(query, limit)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Search cache hit for %r (limit=%d)", query, limit)
            return SearchResult(recipes=cached)

        try:
            hits = self.client.search(query, limit)
        except (MissingConfiguration, UpstreamTransient) as e:
            logger.warning("Recipe search degraded for %r: %s", query, e)
            return SearchResult(degraded=True)

        recipes = [normalize_hit(hit) for hit in hits if is_recipe_hit(hit)]
        recipes = [r for r in recipes if r['title']]
        self.cache.set(key, recipes)
        return SearchResult(recipes=recipes)
