from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence

from splitstack.db.models import Participant, Receipt, Stack
from splitstack.services.errors import InvariantViolation
from splitstack.services.receipts import create_empty_receipt
from splitstack.services.settlement import Debt, compute_net_balances, consolidate_debts, participating


@dataclass(slots=True, frozen=True)
class StackOverview:
    balances: dict[Participant, Decimal]
    debts: list[Debt]
    participants: list[Participant]
    completed_count: int

    @property
    def settled(self) -> bool:
        return self.completed_count > 0 and not self.debts


def create_stack(
    name: str,
    stack_date: date,
    roster: Sequence[Participant],
    *,
    now: Optional[datetime] = None,
) -> Stack:
    created_at = now or datetime.now(timezone.utc)
    return Stack(
        id=uuid.uuid4().hex,
        name=name.strip(),
        date=stack_date,
        receipts=(create_empty_receipt(roster, now=created_at),),
        created_at=created_at,
    )


def rename_stack(stack: Stack, name: str) -> Stack:
    return replace(stack, name=name.strip())


def add_receipt(stack: Stack, roster: Sequence[Participant], *, now: Optional[datetime] = None) -> Stack:
    return replace(stack, receipts=(*stack.receipts, create_empty_receipt(roster, now=now)))


def _check_index(stack: Stack, index: int) -> None:
    if not 0 <= index < len(stack.receipts):
        raise IndexError(f"Stack has no receipt #{index + 1}")


def replace_receipt(stack: Stack, index: int, receipt: Receipt) -> Stack:
    _check_index(stack, index)
    receipts = list(stack.receipts)
    receipts[index] = receipt
    return replace(stack, receipts=tuple(receipts))


def delete_receipt(stack: Stack, index: int) -> Stack:
    _check_index(stack, index)
    if len(stack.receipts) <= 1:
        raise InvariantViolation("A stack keeps at least one receipt.")
    return replace(stack, receipts=stack.receipts[:index] + stack.receipts[index + 1:])


def completed_receipts(stack: Stack) -> list[Receipt]:
    return [receipt for receipt in stack.receipts if receipt.is_completed]


def build_overview(receipts: Sequence[Receipt], roster: Sequence[Participant]) -> StackOverview:
    completed = [receipt for receipt in receipts if receipt.is_completed]
    balances = compute_net_balances(completed, roster)
    return StackOverview(
        balances=balances,
        debts=consolidate_debts(completed, roster),
        participants=participating(balances, roster),
        completed_count=len(completed),
    )
