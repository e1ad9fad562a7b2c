"""
RecipeBox Backend - Recipe SQLAlchemy Models
==============================================

What:  ORM models for the `recipes` and `recipe_tags` tables.
Why:   The SQL store persists recipe documents; these models map them to rows.
How:   Inherits from the shared DeclarativeBase; Alembic reads these for migrations.
Who:   Used only by SQLRecipeStore. The rest of the application sees
       app.schemas.recipe.Recipe, never these classes.

Table Design Rationale:
    - UUID primary key generated by the repository (uuid4), never by the DB
    - ingredients / instructions: JSON arrays, carried opaquely
    - tags: child rows so that "recipe has tag X" is an indexed lookup.
      `position` keeps the caller's order, `folded` holds name.casefold()
      for case-insensitive equality that behaves the same on every backend.
    - published_at: UTC with timezone, set once at creation
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class RecipeRow(Base):
    """
    One recipe document.

    Lifecycle:
        1. Inserted by create() or by the seed loader
        2. Name / tags / ingredients / instructions replaced by update()
        3. Removed by delete(); tag rows go with it (ON DELETE CASCADE)

    `id` and `published_at` are never written after the insert.
    """

    __tablename__ = "recipes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        comment="Recipe identifier, assigned by the repository on creation",
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name",
    )

    ingredients: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered ingredient lines",
    )

    instructions: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered instruction steps",
    )

    published_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        comment="When the recipe was created (UTC)",
    )

    # selectin: tags are loaded with the recipe in one extra SELECT ... IN,
    # which is the only lazy-load strategy that works under asyncio.
    tags: Mapped[List["RecipeTagRow"]] = relationship(
        back_populates="recipe",
        order_by="RecipeTagRow.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<RecipeRow(id={self.id}, name='{self.name}')>"


class RecipeTagRow(Base):
    """A single tag of a recipe, in its original position."""

    __tablename__ = "recipe_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipe_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("recipes.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    folded: Mapped[str] = mapped_column(
        String(300),
        nullable=False,
        comment="casefold() of name, used by tag search (up to 3x the length of name)",
    )

    recipe: Mapped[RecipeRow] = relationship(back_populates="tags")

    __table_args__ = (
        Index("idx_recipe_tags_folded", "folded"),
        Index("idx_recipe_tags_recipe_id", "recipe_id"),
    )

    @classmethod
    def from_names(cls, names: List[str]) -> List["RecipeTagRow"]:
        """Build ordered tag rows for a list of tag names."""
        return [
            cls(position=i, name=name, folded=name.casefold())
            for i, name in enumerate(names)
        ]
