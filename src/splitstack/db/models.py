from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

Participant = str

ZERO = Decimal("0")


@dataclass(slots=True, frozen=True)
class LineItem:
    name: str
    price: Decimal


@dataclass(slots=True, frozen=True)
class SharedLineItem:
    name: str
    price: Decimal
    participants: tuple[Participant, ...]


@dataclass(slots=True, frozen=True)
class Receipt:
    id: str
    subject: str
    active_participants: tuple[Participant, ...]
    individual_items: dict[Participant, tuple[LineItem, ...]]
    shared_items: tuple[SharedLineItem, ...]
    timestamp: datetime
    taxes: Decimal = ZERO
    tip: Decimal = ZERO
    payer: Optional[Participant] = None
    splits: dict[Participant, Decimal] = field(default_factory=dict)
    is_completed: bool = False
    payments: dict[Participant, bool] = field(default_factory=dict)

    @property
    def subtotal(self) -> Decimal:
        individual = sum(
            (item.price for p in self.active_participants for item in self.individual_items.get(p, ())),
            ZERO,
        )
        shared = sum((item.price for item in self.shared_items), ZERO)
        return individual + shared

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.taxes + self.tip


@dataclass(slots=True, frozen=True)
class Stack:
    id: str
    name: str
    date: date
    receipts: tuple[Receipt, ...]
    created_at: datetime
    share_id: Optional[str] = None


@dataclass(slots=True, frozen=True)
class SharedSnapshot:
    stack_name: str
    stack_date: date
    receipts: tuple[Receipt, ...]
    shared_at: datetime
