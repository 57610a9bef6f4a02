from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from splitstack.db.models import LineItem
from splitstack.services.errors import InvariantViolation
from splitstack.services.receipts import add_individual_item, finalize_receipt, set_payer, set_subject
from splitstack.services.settlement import Debt
from splitstack.services.stacks import (
    add_receipt,
    build_overview,
    completed_receipts,
    create_stack,
    delete_receipt,
    rename_stack,
    replace_receipt,
)

ROSTER = ("alice", "bob")
NOW = datetime(2025, 6, 21, 18, 0, tzinfo=timezone.utc)


def finished(stack, index: int, payer: str, spent: dict[str, str]):
    receipt = set_subject(stack.receipts[index], f"Round {index + 1}")
    for participant, price in spent.items():
        receipt = add_individual_item(receipt, participant, LineItem(name="drink", price=Decimal(price)))
    receipt = finalize_receipt(set_payer(receipt, payer))
    return replace_receipt(stack, index, receipt)


def test_new_stack_starts_with_one_empty_receipt():
    stack = create_stack(" Beach day ", date(2025, 6, 21), ROSTER, now=NOW)

    assert stack.name == "Beach day"
    assert stack.created_at == NOW
    assert len(stack.receipts) == 1
    assert stack.receipts[0].active_participants == ROSTER
    assert stack.share_id is None
    assert completed_receipts(stack) == []


def test_receipts_can_be_added_replaced_and_deleted():
    stack = create_stack("Trip", date(2025, 6, 21), ROSTER, now=NOW)
    stack = add_receipt(stack, ROSTER)
    stack = finished(stack, 1, "bob", {"alice": "10.00", "bob": "4.00"})

    assert len(stack.receipts) == 2
    assert completed_receipts(stack) == [stack.receipts[1]]

    stack = delete_receipt(stack, 0)
    assert len(stack.receipts) == 1
    assert stack.receipts[0].is_completed

    with pytest.raises(IndexError):
        replace_receipt(stack, 3, stack.receipts[0])


def test_last_receipt_cannot_be_deleted():
    stack = create_stack("Trip", date(2025, 6, 21), ROSTER, now=NOW)

    with pytest.raises(InvariantViolation):
        delete_receipt(stack, 0)


def test_rename_keeps_receipts():
    stack = create_stack("Trip", date(2025, 6, 21), ROSTER, now=NOW)

    renamed = rename_stack(stack, "Road trip")

    assert renamed.name == "Road trip"
    assert renamed.receipts == stack.receipts


def test_overview_of_two_receipts_that_cancel_out():
    stack = create_stack("Trip", date(2025, 6, 21), ROSTER, now=NOW)
    stack = finished(stack, 0, "alice", {"alice": "5.00", "bob": "20.00"})
    stack = add_receipt(stack, ROSTER)
    stack = finished(stack, 1, "bob", {"alice": "20.00", "bob": "5.00"})
    stack = add_receipt(stack, ROSTER)

    overview = build_overview(stack.receipts, ROSTER)

    assert overview.completed_count == 2
    assert overview.debts == []
    assert overview.participants == []
    assert overview.settled


def test_overview_lists_debts():
    stack = create_stack("Trip", date(2025, 6, 21), ROSTER, now=NOW)
    stack = finished(stack, 0, "alice", {"alice": "5.00", "bob": "20.00"})

    overview = build_overview(stack.receipts, ROSTER)

    assert overview.balances == {"alice": Decimal("20.00"), "bob": Decimal("-20.00")}
    assert overview.debts == [Debt(from_participant="bob", to_participant="alice", amount=Decimal("20.00"))]
    assert overview.participants == ["alice", "bob"]
    assert not overview.settled
