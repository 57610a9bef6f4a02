from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence

from splitstack.db.models import Participant

_AMOUNT_RE = re.compile(r"^\$?\s*(\d+(?:[.,]\d{1,2})?)$")


def parse_amount(text: str) -> Decimal:
    """
    Parse a non-negative money amount with at most two decimals.

    Accepted: 12, 12.5, 12.50, 12,50, $12.50
    """
    match = _AMOUNT_RE.match(text.strip())
    if not match:
        raise ValueError(f"Not a valid amount: {text!r}")
    try:
        return Decimal(match.group(1).replace(",", "."))
    except InvalidOperation as exc:
        raise ValueError(f"Not a valid amount: {text!r}") from exc


def parse_stack_date(text: str, default: Optional[date] = None) -> date:
    text = text.strip()
    if not text:
        if default is None:
            raise ValueError("Expected a date")
        return default

    for fmt in ("%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError("Expected a date like 2025-06-21 or 21.06.2025")


def parse_participant(text: str, roster: Sequence[Participant]) -> Participant:
    name = text.strip().lstrip("@").lower()
    if name not in roster:
        raise ValueError(f"Unknown friend: {text.strip()}")
    return name


def parse_participants(text: str, roster: Sequence[Participant]) -> list[Participant]:
    names = [part for part in re.split(r"[\s,]+", text) if part]
    if not names:
        raise ValueError("Name at least one friend")
    if len(names) == 1 and names[0].lower() == "all":
        return list(roster)
    result: list[Participant] = []
    for name in names:
        participant = parse_participant(name, roster)
        if participant not in result:
            result.append(participant)
    return result


def parse_index(text: str) -> int:
    """Convert a 1-based position typed by the user to a 0-based index."""
    try:
        value = int(text.strip())
    except ValueError as exc:
        raise ValueError(f"Not a number: {text.strip()!r}") from exc
    if value < 1:
        raise ValueError("Positions start at 1")
    return value - 1
