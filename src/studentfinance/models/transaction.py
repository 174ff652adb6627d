"""SQLModel definitions for ledger transactions."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from .account import AccountType


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class RecurrenceInterval(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class Transaction(SQLModel, table=True):
    """A single ledger entry; ``amount`` is always a positive magnitude.

    Income credits the ``to`` account, expense debits the ``from`` account and
    a transfer does both. ``*_account_id`` wins over the legacy type tag when set.
    For a split expense ``amount`` is the user's own share; the friend's part
    lives in ``friend_amount``.
    """

    __tablename__: ClassVar[str] = "transaction"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    date: datetime = Field(nullable=False, index=True)
    amount: Decimal = Field(nullable=False, max_digits=14, decimal_places=2)
    description: str = Field(default="", max_length=255)
    transaction_type: TransactionType = Field(nullable=False, index=True)

    from_account: Optional[AccountType] = Field(default=None)
    to_account: Optional[AccountType] = Field(default=None)
    from_account_id: Optional[UUID] = Field(default=None, index=True)
    to_account_id: Optional[UUID] = Field(default=None, index=True)

    category_id: Optional[UUID] = Field(default=None, index=True)
    pool_id: Optional[UUID] = Field(default=None, index=True)

    is_recurring: bool = Field(default=False, nullable=False)
    recurrence_interval: RecurrenceInterval = Field(default=RecurrenceInterval.NONE, nullable=False)
    recurrence_end_date: Optional[datetime] = Field(default=None)
    parent_transaction_id: Optional[UUID] = Field(default=None, index=True)
    is_future_transaction: bool = Field(default=False, nullable=False)

    is_split: bool = Field(default=False, nullable=False)
    friend_name: str = Field(default="", max_length=128)
    friend_amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    user_amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    friend_payment_destination: str = Field(default="", max_length=128)
    friend_payment_account_id: Optional[UUID] = Field(default=None, index=True)
    friend_payment_is_account: bool = Field(default=False, nullable=False)

    def references_account(self, account_id: UUID) -> bool:
        return account_id in (self.from_account_id, self.to_account_id)

    @property
    def total_amount(self) -> Decimal:
        """Full bill of a split expense: the user's share plus the friend's."""
        if self.is_split:
            return self.amount + self.friend_amount
        return self.amount

    @property
    def friend_share_account_id(self) -> Optional[UUID]:
        """Account that received the friend's repayment, if it went to one."""
        if self.is_split and self.friend_payment_is_account:
            return self.friend_payment_account_id
        return None

    def copy_with(self, **changes) -> "Transaction":
        """Detached copy with some fields replaced (the id is kept unless overridden)."""
        data = self.model_dump()
        data.update(changes)
        return Transaction(**data)
