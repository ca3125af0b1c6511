"""
Meal Plan Models

Contains the MealPlan header and its Meal rows. A plan and all of its meals
are written in a single transaction.
"""

from datetime import datetime

from .base import db


class MealPlan(db.Model):
    """Weekly plan header owning one Meal per day and slot."""
    id = db.Column(db.Integer, primary_key=True)
    week_start = db.Column(db.Date, nullable=False, index=True)
    week_end = db.Column(db.Date, nullable=False)
    goal = db.Column(db.String(100), nullable=False, default='normal')
    weekly_intent_id = db.Column(db.Integer, db.ForeignKey('weekly_intent.id', ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    weekly_intent = db.relationship('WeeklyIntent')
    meals = db.relationship(
        'Meal', backref='meal_plan', lazy=True, cascade='all, delete-orphan',
        order_by=lambda: [Meal.date, Meal.position],
    )

    def to_dict(self, include_meals=True):
        data = {
            'id': self.id,
            'weekStart': self.week_start.isoformat(),
            'weekEnd': self.week_end.isoformat(),
            'goal': self.goal,
            'weeklyIntentId': self.weekly_intent_id,
            'weeklyIntent': self.weekly_intent.to_dict() if self.weekly_intent else None,
        }
        if include_meals:
            data['meals'] = [meal.to_dict() for meal in self.meals]
        return data


class Meal(db.Model):
    """One slot of one day. Macros record the target, not the recipe's actual values."""
    id = db.Column(db.Integer, primary_key=True)
    meal_plan_id = db.Column(db.Integer, db.ForeignKey('meal_plan.id', ondelete='CASCADE'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)  # slot index within the day
    type = db.Column(db.String(20), nullable=False)
    protein = db.Column(db.Float, nullable=False)
    carbs = db.Column(db.Float, nullable=False)
    fat = db.Column(db.Float, nullable=False)
    calories = db.Column(db.Float, nullable=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipe.id', ondelete='SET NULL'), nullable=True, index=True)
    recipe = db.relationship('Recipe')

    def to_dict(self):
        return {
            'id': self.id,
            'mealPlanId': self.meal_plan_id,
            'date': self.date.isoformat(),
            'position': self.position,
            'type': self.type,
            'protein': self.protein,
            'carbs': self.carbs,
            'fat': self.fat,
            'calories': self.calories,
            'recipeId': self.recipe_id,
            'recipe': self.recipe.to_dict() if self.recipe else None,
        }
