"""Create recipes and recipe_tags tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Initial RecipeBox schema.
How:   `recipes` holds one row per recipe with JSON ingredient/instruction
       arrays; `recipe_tags` holds one row per tag, keyed by position, with
       a casefolded copy of the name for case-insensitive tag search.

Rollback: downgrade() drops both tables (all recipe data is lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "recipes",
        sa.Column(
            "id",
            sa.Uuid(),
            nullable=False,
            comment="Recipe identifier, assigned by the repository on creation",
        ),
        sa.Column("name", sa.String(255), nullable=False, comment="Display name"),
        sa.Column("ingredients", sa.JSON(), nullable=False, comment="Ordered ingredient lines"),
        sa.Column("instructions", sa.JSON(), nullable=False, comment="Ordered instruction steps"),
        sa.Column(
            "published_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When the recipe was created (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "recipe_tags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("recipe_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column(
            "folded",
            sa.String(300),
            nullable=False,
            comment="casefold() of name, used by tag search (up to 3x the length of name)",
        ),
        sa.ForeignKeyConstraint(["recipe_id"], ["recipes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    # Tag search: WHERE folded = :tag
    op.create_index("idx_recipe_tags_folded", "recipe_tags", ["folded"])
    # Loading a recipe's tags: WHERE recipe_id IN (...)
    op.create_index("idx_recipe_tags_recipe_id", "recipe_tags", ["recipe_id"])


def downgrade() -> None:
    op.drop_index("idx_recipe_tags_recipe_id", table_name="recipe_tags")
    op.drop_index("idx_recipe_tags_folded", table_name="recipe_tags")
    op.drop_table("recipe_tags")
    op.drop_table("recipes")
