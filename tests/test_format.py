from datetime import date, datetime, timezone
from decimal import Decimal

from splitstack.db.models import LineItem, Receipt, SharedSnapshot
from splitstack.services.format import (
    display_name,
    format_history,
    format_money,
    format_overview,
    format_receipt_card,
    format_shared_snapshot,
    format_split_results,
)
from splitstack.services.receipts import set_payment
from splitstack.services.stacks import build_overview

ROSTER = ("alice", "bob", "carol")


def completed(payer: str, spent: dict[str, str], subject: str = "Dinner") -> Receipt:
    return Receipt(
        id=subject,
        subject=subject,
        active_participants=tuple(spent),
        individual_items={p: (LineItem(name="plate", price=Decimal(v)),) for p, v in spent.items()},
        shared_items=(),
        timestamp=datetime(2025, 6, 21, 20, 15, tzinfo=timezone.utc),
        payer=payer,
        splits={p: Decimal(v) for p, v in spent.items()},
        is_completed=True,
    )


def test_display_name_and_money():
    assert display_name("beatrice") == "Beatrice"
    assert format_money(Decimal("59")) == "$59.00"
    assert format_money(Decimal("-3.5")) == "-$3.50"


def test_split_results_show_payer_receivable():
    receipt = completed("alice", {"alice": "59.00", "bob": "59.00"})

    text = format_split_results(receipt, receipt.splits, ROSTER)

    assert "Alice paid and should receive: $59.00" in text
    assert "Bob owes Alice: $59.00" in text
    assert "Carol" not in text


def test_receipt_card_lists_items_and_totals():
    receipt = completed("bob", {"alice": "12.00", "bob": "3.00"}, subject="<Tacos>")

    text = format_receipt_card(receipt, ROSTER, position="1/2")

    assert "&lt;Tacos&gt;" in text
    assert "2/3 friends" in text
    assert "Total: $15.00" in text
    assert "Paid by: Bob" in text


def test_overview_with_debts_and_settled():
    receipts = [completed("alice", {"alice": "5.00", "bob": "20.00"})]
    text = format_overview(build_overview(receipts, ROSTER))

    assert "Based on 1 completed receipt" in text
    assert "Alice: +$20.00" in text
    assert "Bob: -$20.00" in text
    assert "Bob → Alice: $20.00" in text

    receipts.append(completed("bob", {"alice": "20.00", "bob": "5.00"}, subject="Lunch"))
    text = format_overview(build_overview(receipts, ROSTER))
    assert "All settled up" in text


def test_overview_without_completed_receipts():
    assert "No completed receipts" in format_overview(build_overview([], ROSTER))


def test_history_shows_payment_status():
    receipt = completed("alice", {"alice": "5.00", "bob": "20.00"})
    receipt = set_payment(receipt, "bob")

    text = format_history([receipt], timezone.utc)

    assert "Dinner" in text
    assert "All paid" in text
    assert "1 / 1 paid" in text
    assert "Jun 21, 2025 20:15" in text


def test_shared_snapshot_is_read_only_view():
    receipts = (completed("alice", {"alice": "5.00", "bob": "20.00"}),)
    snapshot = SharedSnapshot(
        stack_name="Picnic <3",
        stack_date=date(2025, 6, 21),
        receipts=receipts,
        shared_at=datetime(2025, 6, 22, 9, 0, tzinfo=timezone.utc),
    )

    text = format_shared_snapshot(snapshot, build_overview(receipts, ROSTER), timezone.utc)

    assert "Picnic &lt;3" in text
    assert "21.06.2025" in text
    assert "read-only" in text
    assert "Bob → Alice: $20.00" in text
    assert "Receipt history" in text
