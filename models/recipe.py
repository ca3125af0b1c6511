"""
Recipe Model

Recipes carry per-serving macros, free-text ingredient and tag lists, and an
optional meal type. A null meal type means the recipe fits any slot.
"""

from datetime import datetime

from utils.normalization import parse_list, normalize_tags

from .base import db


class Recipe(db.Model):
    """Recipe with per-serving macros, used as the candidate pool for matching."""
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False, index=True)
    ingredients = db.Column(db.Text, default='')  # comma-separated free text
    instructions = db.Column(db.Text, default='')
    calories_per_serving = db.Column(db.Float, default=0.0)
    protein_per_serving = db.Column(db.Float, default=0.0)
    carbs_per_serving = db.Column(db.Float, default=0.0)
    fat_per_serving = db.Column(db.Float, default=0.0)
    meal_type = db.Column(db.String(20), nullable=True, index=True)  # None = any slot
    tags = db.Column(db.Text, default='')  # comma-separated free text
    source = db.Column(db.String(20), default='manual')  # 'manual', 'openai', 'edamam'
    servings = db.Column(db.Integer, default=1)
    external_id = db.Column(db.String(100), nullable=True, index=True)
    source_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def ingredient_terms(self):
        """Lowercase ingredient entries."""
        return parse_list(self.ingredients)

    @property
    def tag_set(self):
        """Normalized tags ('High Satiety' -> 'high_satiety')."""
        return set(normalize_tags(self.tags))

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'ingredients': self.ingredients or '',
            'instructions': self.instructions or '',
            'caloriesPerServing': self.calories_per_serving,
            'proteinPerServing': self.protein_per_serving,
            'carbsPerServing': self.carbs_per_serving,
            'fatPerServing': self.fat_per_serving,
            'mealType': self.meal_type,
            'tags': normalize_tags(self.tags),
            'source': self.source,
            'servings': self.servings,
            'externalId': self.external_id,
            'sourceUrl': self.source_url,
        }

    def __repr__(self):
        return f'<Recipe {self.id} {self.title!r}>'
