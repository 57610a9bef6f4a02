from datetime import date
from decimal import Decimal

import pytest

from splitstack.utils.parse import parse_amount, parse_index, parse_participant, parse_participants, parse_stack_date

ROSTER = ("alice", "bob", "carol")


def test_parse_amount_formats():
    assert parse_amount("12") == Decimal("12")
    assert parse_amount(" 12.5 ") == Decimal("12.5")
    assert parse_amount("12,50") == Decimal("12.50")
    assert parse_amount("$7.25") == Decimal("7.25")


@pytest.mark.parametrize("value", ["", "-3", "abc", "1.234", "1.2.3"])
def test_parse_amount_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_amount(value)


def test_parse_stack_date():
    assert parse_stack_date("2025-06-21") == date(2025, 6, 21)
    assert parse_stack_date("21.06.2025") == date(2025, 6, 21)
    assert parse_stack_date("", default=date(2025, 1, 1)) == date(2025, 1, 1)
    with pytest.raises(ValueError):
        parse_stack_date("tomorrow")
    with pytest.raises(ValueError):
        parse_stack_date("")


def test_parse_participants():
    assert parse_participant(" @Bob ", ROSTER) == "bob"
    assert parse_participants("alice, Carol alice", ROSTER) == ["alice", "carol"]
    assert parse_participants("all", ROSTER) == list(ROSTER)
    with pytest.raises(ValueError):
        parse_participants("alice mallory", ROSTER)
    with pytest.raises(ValueError):
        parse_participants("  ", ROSTER)


def test_parse_index():
    assert parse_index("1") == 0
    assert parse_index(" 3 ") == 2
    with pytest.raises(ValueError):
        parse_index("0")
    with pytest.raises(ValueError):
        parse_index("x")
