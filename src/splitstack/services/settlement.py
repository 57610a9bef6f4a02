from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Sequence

from splitstack.db.models import ZERO, Participant, Receipt

EPSILON = Decimal("0.01")


@dataclass(slots=True, frozen=True)
class Debt:
    from_participant: Participant
    to_participant: Participant
    amount: Decimal


def is_settled(amount: Decimal) -> bool:
    return abs(amount) <= EPSILON


def compute_net_balances(
    completed_receipts: Iterable[Receipt],
    roster: Sequence[Participant],
) -> dict[Participant, Decimal]:
    """Positive balance: the group owes that participant. Negative: they owe the group."""
    balances: dict[Participant, Decimal] = {participant: ZERO for participant in roster}

    for receipt in completed_receipts:
        payer = receipt.payer
        if not payer:
            continue
        payer_owes = receipt.splits.get(payer, ZERO)
        balances[payer] = balances.get(payer, ZERO) + (receipt.total - payer_owes)

        for participant in roster:
            if participant != payer:
                balances[participant] -= receipt.splits.get(participant, ZERO)

    return balances


def consolidate_debts(
    completed_receipts: Iterable[Receipt],
    roster: Sequence[Participant],
) -> List[Debt]:
    raw_debts: dict[tuple[Participant, Participant], Decimal] = {}

    for receipt in completed_receipts:
        payer = receipt.payer
        if not payer:
            continue
        for participant in roster:
            if participant == payer:
                continue
            owed = receipt.splits.get(participant, ZERO)
            if owed > EPSILON:
                key = (participant, payer)
                raw_debts[key] = raw_debts.get(key, ZERO) + owed

    debts: list[Debt] = []
    processed: set[frozenset[Participant]] = set()

    for debtor, creditor in raw_debts:
        pair = frozenset((debtor, creditor))
        if pair in processed:
            continue
        processed.add(pair)

        net = raw_debts[(debtor, creditor)] - raw_debts.get((creditor, debtor), ZERO)
        if abs(net) <= EPSILON:
            continue
        if net > 0:
            debts.append(Debt(from_participant=debtor, to_participant=creditor, amount=net))
        else:
            debts.append(Debt(from_participant=creditor, to_participant=debtor, amount=-net))

    return debts


def participating(balances: dict[Participant, Decimal], roster: Sequence[Participant]) -> list[Participant]:
    return [participant for participant in roster if not is_settled(balances.get(participant, ZERO))]
