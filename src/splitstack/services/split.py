from __future__ import annotations

from decimal import ROUND_CEILING, Decimal

from splitstack.db.models import ZERO, Participant, Receipt
from splitstack.services.errors import InvariantViolation, ValidationError

CENT = Decimal("0.01")


def round_up_cent(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_CEILING)


def missing_fields(receipt: Receipt) -> list[str]:
    missing: list[str] = []
    if not receipt.subject.strip():
        missing.append("subject")
    if not receipt.payer:
        missing.append("payer")
    if receipt.total <= 0:
        missing.append("total")
    return missing


def compute_split(receipt: Receipt) -> dict[Participant, Decimal]:
    """Compute what each active participant owes toward the receipt total.

    Individual items are charged to their owner, shared items are divided
    evenly among their participants (shares of inactive participants are
    dropped), taxes scale every running split by ``taxes / subtotal + 1``,
    the tip is split evenly across active participants, and each non-zero
    split is rounded up to the cent. The payer's own entry is what they owe
    themselves; what they receive is ``payer_receivable``.
    """
    missing = missing_fields(receipt)
    if missing:
        raise ValidationError(missing)
    active = receipt.active_participants
    if receipt.payer not in active:
        raise InvariantViolation(f"Payer {receipt.payer!r} is not part of this receipt.")

    splits: dict[Participant, Decimal] = {participant: ZERO for participant in active}

    for participant in active:
        splits[participant] += sum(
            (item.price for item in receipt.individual_items.get(participant, ())),
            ZERO,
        )

    for shared in receipt.shared_items:
        if not shared.participants:
            continue
        share = shared.price / len(shared.participants)
        for participant in shared.participants:
            if participant in splits:
                splits[participant] += share

    subtotal = receipt.subtotal
    if subtotal > 0 and receipt.taxes > 0:
        # the whole running split is scaled, shared shares included
        tax_rate = receipt.taxes / subtotal + 1
        for participant in active:
            splits[participant] *= tax_rate

    if receipt.tip > 0:
        tip_share = receipt.tip / len(active)
        for participant in active:
            splits[participant] += tip_share

    for participant in active:
        if splits[participant] > 0:
            splits[participant] = round_up_cent(splits[participant])

    return splits


def payer_receivable(receipt: Receipt) -> Decimal:
    if not receipt.payer:
        return ZERO
    return receipt.total - receipt.splits.get(receipt.payer, ZERO)
