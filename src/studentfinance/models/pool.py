"""Pools: named sub-allocations ("envelopes") of an account balance."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import ClassVar
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class PoolColor(str, Enum):
    BLUE = "Blue"
    GREEN = "Green"
    ORANGE = "Orange"
    PURPLE = "Purple"
    RED = "Red"
    TEAL = "Teal"


class Pool(SQLModel, table=True):
    """Running balance envelope owned by one account.

    ``amount`` is a manually seeded sub-ledger: assigned expenses shrink it and
    assigned income grows it. It is never recomputed from transactions.
    """

    __tablename__: ClassVar[str] = "pool"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    # weak back-reference, ownership lives in LedgerState.pools
    account_id: UUID = Field(nullable=False, index=True)
    name: str = Field(nullable=False, max_length=64)
    color: PoolColor = Field(default=PoolColor.BLUE, nullable=False)
    amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    position: int = Field(default=0, nullable=False)
