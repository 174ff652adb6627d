"""Ledger category definitions."""

from __future__ import annotations

from enum import Enum
from typing import ClassVar
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class CategoryType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class Category(SQLModel, table=True):
    """Transaction category used for budgeting and reporting."""

    __tablename__: ClassVar[str] = "category"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(index=True, nullable=False, max_length=64)
    category_type: CategoryType = Field(nullable=False, index=True)
    icon_name: str = Field(default="ellipsis", max_length=64)
    position: int = Field(default=0, nullable=False)


DEFAULT_INCOME_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("Salary", "dollarsign.circle"),
    ("Student Loan", "studentdesk"),
    ("Bursary", "banknote"),
    ("Gift", "gift"),
    ("Part-time Job", "briefcase"),
)

DEFAULT_EXPENSE_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("Food", "fork.knife"),
    ("Transport", "bus"),
    ("Bills", "doc.text"),
    ("Entertainment", "film"),
    ("Education", "book"),
    ("Shopping", "cart"),
    ("Housing", "house"),
    ("Other", "ellipsis"),
)


def default_categories(category_type: CategoryType) -> list[Category]:
    """Fresh default category rows for first launch."""

    source = (
        DEFAULT_INCOME_CATEGORIES
        if category_type == CategoryType.INCOME
        else DEFAULT_EXPENSE_CATEGORIES
    )
    return [
        Category(name=name, category_type=category_type, icon_name=icon, position=index)
        for index, (name, icon) in enumerate(source)
    ]
