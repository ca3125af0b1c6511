"""Initial planner schema

Revision ID: 3b7e21c9d4a0
Revises:
Create Date: 2026-10-19 09:12:44.118204

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3b7e21c9d4a0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'recipe',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('ingredients', sa.Text(), nullable=True),
        sa.Column('instructions', sa.Text(), nullable=True),
        sa.Column('calories_per_serving', sa.Float(), nullable=True),
        sa.Column('protein_per_serving', sa.Float(), nullable=True),
        sa.Column('carbs_per_serving', sa.Float(), nullable=True),
        sa.Column('fat_per_serving', sa.Float(), nullable=True),
        sa.Column('meal_type', sa.String(length=20), nullable=True),
        sa.Column('tags', sa.Text(), nullable=True),
        sa.Column('source', sa.String(length=20), nullable=True),
        sa.Column('servings', sa.Integer(), nullable=True),
        sa.Column('external_id', sa.String(length=100), nullable=True),
        sa.Column('source_url', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('recipe', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_recipe_title'), ['title'], unique=False)
        batch_op.create_index(batch_op.f('ix_recipe_meal_type'), ['meal_type'], unique=False)
        batch_op.create_index(batch_op.f('ix_recipe_external_id'), ['external_id'], unique=False)

    macro_columns = [
        sa.Column(f'{slot}_{macro}', sa.Float(), nullable=False)
        for slot in ('breakfast', 'lunch', 'snack', 'dinner')
        for macro in ('protein', 'carbs', 'fat')
    ]
    op.create_table(
        'macro_profile',
        sa.Column('id', sa.Integer(), nullable=False),
        *macro_columns,
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'user_preferences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('excluded_ingredients', sa.Text(), nullable=True),
        sa.Column('preferred_cuisines', sa.Text(), nullable=True),
        sa.Column('satiety_level', sa.String(length=20), nullable=True),
        sa.Column('cooking_effort', sa.String(length=20), nullable=True),
        sa.Column('required_tags', sa.Text(), nullable=True),
        sa.Column('preferred_tags', sa.Text(), nullable=True),
        sa.Column('avoided_tags', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'weekly_intent',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('week_start', sa.Date(), nullable=False),
        sa.Column('goal', sa.String(length=100), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('weekly_intent', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_weekly_intent_week_start'), ['week_start'], unique=False)

    op.create_table(
        'meal_plan',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('week_start', sa.Date(), nullable=False),
        sa.Column('week_end', sa.Date(), nullable=False),
        sa.Column('goal', sa.String(length=100), nullable=False),
        sa.Column('weekly_intent_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['weekly_intent_id'], ['weekly_intent.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('meal_plan', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_meal_plan_week_start'), ['week_start'], unique=False)

    op.create_table(
        'meal',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('meal_plan_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('protein', sa.Float(), nullable=False),
        sa.Column('carbs', sa.Float(), nullable=False),
        sa.Column('fat', sa.Float(), nullable=False),
        sa.Column('calories', sa.Float(), nullable=True),
        sa.Column('recipe_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['meal_plan_id'], ['meal_plan.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['recipe_id'], ['recipe.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('meal', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_meal_meal_plan_id'), ['meal_plan_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_meal_recipe_id'), ['recipe_id'], unique=False)


def downgrade():
    op.drop_table('meal')
    op.drop_table('meal_plan')
    op.drop_table('weekly_intent')
    op.drop_table('user_preferences')
    op.drop_table('macro_profile')
    op.drop_table('recipe')
