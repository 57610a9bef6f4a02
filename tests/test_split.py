from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from splitstack.db.models import LineItem, Receipt, SharedLineItem
from splitstack.services.errors import InvariantViolation, ValidationError
from splitstack.services.receipts import remove_participant
from splitstack.services.split import compute_split, missing_fields, payer_receivable, round_up_cent

ROSTER = ("alice", "bob", "carol")


def make_receipt(
    *,
    active=ROSTER,
    items=None,
    shared=(),
    taxes="0",
    tip="0",
    payer="alice",
    subject="Dinner",
) -> Receipt:
    individual = {participant: () for participant in ROSTER}
    for participant, prices in (items or {}).items():
        individual[participant] = tuple(LineItem(name=f"item{i}", price=Decimal(p)) for i, p in enumerate(prices))
    return Receipt(
        id="r1",
        subject=subject,
        active_participants=tuple(active),
        individual_items=individual,
        shared_items=tuple(shared),
        timestamp=datetime(2025, 6, 21, tzinfo=timezone.utc),
        taxes=Decimal(taxes),
        tip=Decimal(tip),
        payer=payer,
    )


def test_tax_and_tip_scenario():
    receipt = make_receipt(
        active=("alice", "bob"),
        items={"alice": ["50.00"], "bob": ["50.00"]},
        taxes="8.00",
        tip="10.00",
    )

    splits = compute_split(receipt)

    assert receipt.subtotal == Decimal("100.00")
    assert receipt.total == Decimal("118.00")
    assert splits == {"alice": Decimal("59.00"), "bob": Decimal("59.00")}
    assert payer_receivable(replace(receipt, splits=splits)) == Decimal("59.00")


def test_deactivated_participant_leaves_shared_item_to_the_others():
    receipt = make_receipt(
        shared=[SharedLineItem(name="Nachos", price=Decimal("30.00"), participants=ROSTER)],
    )

    receipt = remove_participant(receipt, "carol")
    splits = compute_split(receipt)

    assert receipt.shared_items[0].participants == ("alice", "bob")
    assert splits == {"alice": Decimal("15.00"), "bob": Decimal("15.00")}
    assert "carol" not in splits


def test_shared_share_of_inactive_listed_participant_is_dropped():
    receipt = make_receipt(
        active=("alice", "bob"),
        shared=[SharedLineItem(name="Nachos", price=Decimal("30.00"), participants=ROSTER)],
    )

    splits = compute_split(receipt)

    # carol's 10.00 is not redistributed
    assert splits == {"alice": Decimal("10.00"), "bob": Decimal("10.00")}
    assert sum(splits.values()) == Decimal("20.00")


def test_individual_items_only_round_up_to_the_cent():
    receipt = make_receipt(items={"alice": ["3.333", "1.00"], "bob": ["2.001"], "carol": ["4.50"]})

    splits = compute_split(receipt)

    assert splits == {"alice": Decimal("4.34"), "bob": Decimal("2.01"), "carol": Decimal("4.50")}


def test_rounding_is_ceiling_not_nearest():
    receipt = make_receipt(
        shared=[SharedLineItem(name="Pizza", price=Decimal("10.00"), participants=ROSTER)],
    )

    splits = compute_split(receipt)

    assert set(splits.values()) == {Decimal("3.34")}


def test_tax_scales_whole_running_split_including_shared_shares():
    receipt = make_receipt(
        active=("alice", "bob"),
        items={"alice": ["40.00"]},
        shared=[SharedLineItem(name="Wine", price=Decimal("20.00"), participants=("alice", "bob"))],
        taxes="6.00",
    )

    splits = compute_split(receipt)

    assert splits == {"alice": Decimal("55.00"), "bob": Decimal("11.00")}


def test_tip_is_split_evenly_regardless_of_spend():
    receipt = make_receipt(active=("alice", "bob"), items={"alice": ["20.00"]}, tip="10.00")

    splits = compute_split(receipt)

    assert splits == {"alice": Decimal("25.00"), "bob": Decimal("5.00")}


def test_tax_skipped_when_subtotal_is_zero():
    receipt = make_receipt(active=("alice", "bob"), taxes="5.00")

    splits = compute_split(receipt)

    assert splits == {"alice": Decimal("0"), "bob": Decimal("0")}


def test_split_is_idempotent():
    receipt = make_receipt(
        items={"alice": ["12.99"], "bob": ["7.25"]},
        shared=[SharedLineItem(name="Fries", price=Decimal("9.00"), participants=("bob", "carol"))],
        taxes="2.71",
        tip="5.00",
    )

    assert compute_split(receipt) == compute_split(receipt)


def test_missing_fields_are_all_reported():
    receipt = make_receipt(subject="  ", payer=None)

    assert missing_fields(receipt) == ["subject", "payer", "total"]
    with pytest.raises(ValidationError) as excinfo:
        compute_split(receipt)
    assert excinfo.value.missing == ("subject", "payer", "total")
    assert "subject" in str(excinfo.value)


def test_payer_must_be_active():
    receipt = make_receipt(active=("alice", "bob"), items={"alice": ["10"]}, payer="carol")

    with pytest.raises(InvariantViolation):
        compute_split(receipt)


def test_round_up_cent():
    assert round_up_cent(Decimal("1.001")) == Decimal("1.01")
    assert round_up_cent(Decimal("1.00")) == Decimal("1.00")
