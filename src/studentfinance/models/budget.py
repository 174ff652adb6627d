"""Budgeting table."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class BudgetType(str, Enum):
    OVERALL = "overall"
    CATEGORY = "category"
    ACCOUNT = "account"


class TimePeriod(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Budget(SQLModel, table=True):
    """Spending target tracked over a rolling weekly/monthly/yearly window.

    ``period_start_date`` and ``current_spent`` are derived by
    ``services.budgeting`` and should not be edited by hand.
    """

    __tablename__: ClassVar[str] = "budget"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(nullable=False, max_length=64)
    amount: Decimal = Field(nullable=False, max_digits=14, decimal_places=2)
    budget_type: BudgetType = Field(nullable=False)
    time_period: TimePeriod = Field(nullable=False)
    category_id: Optional[UUID] = Field(default=None, index=True)
    account_id: Optional[UUID] = Field(default=None, index=True)
    start_date: datetime = Field(nullable=False)
    period_start_date: Optional[datetime] = Field(default=None)
    current_spent: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)

    @property
    def remaining_amount(self) -> Decimal:
        return max(Decimal("0.00"), self.amount - self.current_spent)

    @property
    def percent_used(self) -> float:
        if self.amount <= 0:
            return 0.0
        return min(1.0, float(self.current_spent / self.amount))
