"""
Smoke tests for the planner backend.
Run with: python tests/smoke.py
"""

import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

def test_app_imports():
    """Verify the app factory can be imported without errors."""
    from app import create_app, db
    assert callable(create_app)
    assert db is not None
    print("OK: App imports successfully")

def test_models_import():
    """Verify models can be imported."""
    from models import Recipe, MacroProfile, UserPreferences, WeeklyIntent, MealPlan, Meal
    assert Recipe is not None
    assert MealPlan is not None
    print("OK: Models import successfully")

def test_utils_import():
    """Verify normalization and sanitization helpers can be imported."""
    from utils import parse_list, find_excluded, sanitize_text, get_logger
    assert callable(parse_list)
    assert callable(find_excluded)
    assert callable(sanitize_text)
    assert callable(get_logger)
    print("OK: Utils import successfully")

def test_constants_unchanged():
    """Verify slot layouts and calorie factors have expected values."""
    from constants import MEAL_SLOTS_BY_COUNT, CALORIES_PER_GRAM

    # These values must not change
    assert CALORIES_PER_GRAM == {'protein': 4, 'carbs': 4, 'fat': 9}
    assert MEAL_SLOTS_BY_COUNT[3] == ('breakfast', 'lunch', 'dinner')
    assert MEAL_SLOTS_BY_COUNT[4] == ('breakfast', 'lunch', 'snack', 'dinner')
    assert all(len(MEAL_SLOTS_BY_COUNT[n]) == n for n in range(3, 7))
    print("OK: Constants unchanged")

def test_app_runs():
    """Verify app serves the health endpoint."""
    from app import create_app, init_db
    app = create_app('testing')
    init_db(app)
    with app.test_client() as client:
        response = client.get('/')
        assert response.status_code == 200
        print("OK: App serves health endpoint")

if __name__ == '__main__':
    print("Running smoke tests...\n")

    tests = [
        test_app_imports,
        test_models_import,
        test_utils_import,
        test_constants_unchanged,
        test_app_runs,
    ]

    failed = 0
    for test in tests:
        try:
            test()
        except Exception as e:
            print(f"FAIL: {test.__name__} - {e}")
            failed += 1

    print(f"\n{'='*40}")
    if failed:
        print(f"FAILED: {failed}/{len(tests)} tests")
        sys.exit(1)
    else:
        print(f"PASSED: {len(tests)}/{len(tests)} tests")
        sys.exit(0)
