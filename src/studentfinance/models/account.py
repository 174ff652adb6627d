"""Account model; balance is derived from the transaction list."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import ClassVar
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class AccountType(str, Enum):
    SAVINGS = "savings"
    CURRENT = "current"
    CREDIT = "credit"


class Account(SQLModel, table=True):
    """A user account (bank, savings pot or credit card)."""

    __tablename__: ClassVar[str] = "account"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(nullable=False, max_length=128)
    account_type: AccountType = Field(nullable=False, index=True)
    initial_balance: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    # cached; rewritten by services.balances after every transaction change
    balance: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    position: int = Field(default=0, nullable=False)
