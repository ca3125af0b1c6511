"""
Profile Models

Contains MacroProfile, UserPreferences and WeeklyIntent - the user-facing
configuration read by plan generation.
"""

from dataclasses import dataclass
from datetime import datetime

from utils.normalization import parse_list, normalize_tags

from .base import db


@dataclass(frozen=True)
class MacroTarget:
    """Protein/carbs/fat grams for one meal slot. Immutable for a generation run."""
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0

    def as_tuple(self):
        return (self.protein, self.carbs, self.fat)


class MacroProfile(db.Model):
    """Per-slot macro targets in grams."""
    id = db.Column(db.Integer, primary_key=True)
    breakfast_protein = db.Column(db.Float, nullable=False, default=0.0)
    breakfast_carbs = db.Column(db.Float, nullable=False, default=0.0)
    breakfast_fat = db.Column(db.Float, nullable=False, default=0.0)
    lunch_protein = db.Column(db.Float, nullable=False, default=0.0)
    lunch_carbs = db.Column(db.Float, nullable=False, default=0.0)
    lunch_fat = db.Column(db.Float, nullable=False, default=0.0)
    snack_protein = db.Column(db.Float, nullable=False, default=0.0)
    snack_carbs = db.Column(db.Float, nullable=False, default=0.0)
    snack_fat = db.Column(db.Float, nullable=False, default=0.0)
    dinner_protein = db.Column(db.Float, nullable=False, default=0.0)
    dinner_carbs = db.Column(db.Float, nullable=False, default=0.0)
    dinner_fat = db.Column(db.Float, nullable=False, default=0.0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    SLOTS = ('breakfast', 'lunch', 'snack', 'dinner')
    MACROS = ('protein', 'carbs', 'fat')

    def target_for(self, slot):
        """Build the MacroTarget for a slot name."""
        if slot not in self.SLOTS:
            raise ValueError(f'Unknown meal slot: {slot}')
        return MacroTarget(
            protein=float(getattr(self, f'{slot}_protein') or 0.0),
            carbs=float(getattr(self, f'{slot}_carbs') or 0.0),
            fat=float(getattr(self, f'{slot}_fat') or 0.0),
        )

    def to_dict(self):
        data = {'id': self.id}
        for slot in self.SLOTS:
            for macro in self.MACROS:
                data[f'{slot}{macro.capitalize()}'] = getattr(self, f'{slot}_{macro}')
        return data


class UserPreferences(db.Model):
    """Exclusions, tag preferences and satiety level. At most one active record."""
    id = db.Column(db.Integer, primary_key=True)
    excluded_ingredients = db.Column(db.Text, default='')  # comma-separated
    preferred_cuisines = db.Column(db.Text, default='')  # comma-separated, prompt only
    satiety_level = db.Column(db.String(20), default='normal')
    cooking_effort = db.Column(db.String(20), default='normal')
    required_tags = db.Column(db.Text, default='')
    preferred_tags = db.Column(db.Text, default='')
    avoided_tags = db.Column(db.Text, default='')
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def excluded_terms(self):
        return parse_list(self.excluded_ingredients)

    def to_dict(self):
        return {
            'id': self.id,
            'excludedIngredients': self.excluded_ingredients or '',
            'preferredCuisines': self.preferred_cuisines or '',
            'satietyLevel': self.satiety_level,
            'cookingEffort': self.cooking_effort,
            'requiredTags': normalize_tags(self.required_tags),
            'preferredTags': normalize_tags(self.preferred_tags),
            'avoidedTags': normalize_tags(self.avoided_tags),
        }


class WeeklyIntent(db.Model):
    """Goal for a given week; drives prompt guidance on the AI path."""
    id = db.Column(db.Integer, primary_key=True)
    week_start = db.Column(db.Date, nullable=False, index=True)
    goal = db.Column(db.String(100), nullable=False)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'weekStart': self.week_start.isoformat() if self.week_start else None,
            'goal': self.goal,
            'notes': self.notes,
        }
