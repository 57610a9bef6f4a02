"""Immutable editing operations for a single receipt.

Every function takes a receipt and returns a new one; the input is never
modified, so a caller holding the previous value never observes a partial
update. Contents of a completed receipt are frozen: only payments can change
until the receipt is cleared.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence

from splitstack.db.models import ZERO, LineItem, Participant, Receipt, SharedLineItem
from splitstack.services.errors import InvariantViolation
from splitstack.services.settlement import EPSILON
from splitstack.services.split import compute_split


@dataclass(slots=True, frozen=True)
class PaymentStatus:
    paid: int
    total: int

    @property
    def all_paid(self) -> bool:
        return self.total > 0 and self.paid == self.total


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def _ensure_editable(receipt: Receipt) -> None:
    if receipt.is_completed:
        raise InvariantViolation("This receipt is already saved. Clear it to edit again.")


def _ensure_active(receipt: Receipt, participant: Participant) -> None:
    if participant not in receipt.active_participants:
        raise InvariantViolation(f"{participant} is not part of this receipt.")


def _ensure_amount(amount: Decimal, field_name: str) -> Decimal:
    if amount < 0:
        raise ValueError(f"{field_name} must be non-negative")
    return amount


def create_empty_receipt(roster: Sequence[Participant], *, now: Optional[datetime] = None) -> Receipt:
    if not roster:
        raise InvariantViolation("The roster must contain at least one participant.")
    return Receipt(
        id=uuid.uuid4().hex,
        subject="",
        active_participants=tuple(roster),
        individual_items={participant: () for participant in roster},
        shared_items=(),
        timestamp=_now(now),
    )


def set_subject(receipt: Receipt, subject: str) -> Receipt:
    _ensure_editable(receipt)
    return replace(receipt, subject=subject.strip())


def set_taxes(receipt: Receipt, taxes: Decimal) -> Receipt:
    _ensure_editable(receipt)
    return replace(receipt, taxes=_ensure_amount(taxes, "taxes"))


def set_tip(receipt: Receipt, tip: Decimal) -> Receipt:
    _ensure_editable(receipt)
    return replace(receipt, tip=_ensure_amount(tip, "tip"))


def set_payer(receipt: Receipt, payer: Optional[Participant]) -> Receipt:
    _ensure_editable(receipt)
    if payer is not None:
        _ensure_active(receipt, payer)
    return replace(receipt, payer=payer)


def add_individual_item(receipt: Receipt, participant: Participant, item: LineItem) -> Receipt:
    _ensure_editable(receipt)
    _ensure_active(receipt, participant)
    _ensure_amount(item.price, "price")
    items = dict(receipt.individual_items)
    items[participant] = (*items.get(participant, ()), item)
    return replace(receipt, individual_items=items)


def remove_individual_item(receipt: Receipt, participant: Participant, index: int) -> Receipt:
    _ensure_editable(receipt)
    current = receipt.individual_items.get(participant, ())
    if not 0 <= index < len(current):
        raise IndexError(f"{participant} has no item #{index + 1}")
    items = dict(receipt.individual_items)
    items[participant] = current[:index] + current[index + 1:]
    return replace(receipt, individual_items=items)


def add_shared_item(receipt: Receipt, item: SharedLineItem) -> Receipt:
    _ensure_editable(receipt)
    _ensure_amount(item.price, "price")
    if not item.participants:
        raise InvariantViolation("A shared item needs at least one participant.")
    for participant in item.participants:
        _ensure_active(receipt, participant)
    participants = tuple(dict.fromkeys(item.participants))
    return replace(receipt, shared_items=(*receipt.shared_items, replace(item, participants=participants)))


def remove_shared_item(receipt: Receipt, index: int) -> Receipt:
    _ensure_editable(receipt)
    if not 0 <= index < len(receipt.shared_items):
        raise IndexError(f"There is no shared item #{index + 1}")
    return replace(receipt, shared_items=receipt.shared_items[:index] + receipt.shared_items[index + 1:])


def add_participant(receipt: Receipt, participant: Participant, roster: Sequence[Participant]) -> Receipt:
    _ensure_editable(receipt)
    if participant not in roster:
        raise InvariantViolation(f"{participant} is not on the roster.")
    if participant in receipt.active_participants:
        return receipt
    active = tuple(p for p in roster if p in receipt.active_participants or p == participant)
    items = dict(receipt.individual_items)
    items.setdefault(participant, ())
    return replace(receipt, active_participants=active, individual_items=items)


def remove_participant(receipt: Receipt, participant: Participant) -> Receipt:
    _ensure_editable(receipt)
    if participant not in receipt.active_participants:
        return receipt
    if len(receipt.active_participants) <= 1:
        raise InvariantViolation("At least one participant must stay on the receipt.")

    items = dict(receipt.individual_items)
    items[participant] = ()
    shared: list[SharedLineItem] = []
    for item in receipt.shared_items:
        remaining = tuple(p for p in item.participants if p != participant)
        if remaining:
            shared.append(replace(item, participants=remaining))

    return replace(
        receipt,
        active_participants=tuple(p for p in receipt.active_participants if p != participant),
        individual_items=items,
        shared_items=tuple(shared),
        payer=None if receipt.payer == participant else receipt.payer,
    )


def toggle_participant(receipt: Receipt, participant: Participant, roster: Sequence[Participant]) -> Receipt:
    if participant in receipt.active_participants:
        return remove_participant(receipt, participant)
    return add_participant(receipt, participant, roster)


def finalize_receipt(receipt: Receipt, *, now: Optional[datetime] = None) -> Receipt:
    _ensure_editable(receipt)
    splits = compute_split(receipt)
    return replace(receipt, splits=splits, is_completed=True, payments={}, timestamp=_now(now))


def clear_receipt(receipt: Receipt, roster: Sequence[Participant]) -> Receipt:
    return replace(
        receipt,
        subject="",
        individual_items={participant: () for participant in roster},
        shared_items=(),
        taxes=ZERO,
        tip=ZERO,
        payer=None,
        splits={},
        is_completed=False,
        payments={},
    )


def debtors(receipt: Receipt) -> list[Participant]:
    return [
        participant
        for participant, amount in receipt.splits.items()
        if participant != receipt.payer and amount > EPSILON
    ]


def set_payment(receipt: Receipt, participant: Participant, paid: bool = True) -> Receipt:
    if not receipt.is_completed:
        raise InvariantViolation("Save the receipt before recording payments.")
    if participant not in debtors(receipt):
        raise InvariantViolation(f"{participant} does not owe anything on this receipt.")
    payments = dict(receipt.payments)
    payments[participant] = paid
    return replace(receipt, payments=payments)


def payment_status(receipt: Receipt) -> PaymentStatus:
    owing = debtors(receipt)
    paid = sum(1 for participant in owing if receipt.payments.get(participant))
    return PaymentStatus(paid=paid, total=len(owing))
