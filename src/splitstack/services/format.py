from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from html import escape
from typing import Sequence
from zoneinfo import ZoneInfo

from splitstack.db.models import ZERO, Participant, Receipt, SharedSnapshot, Stack
from splitstack.services.receipts import payment_status
from splitstack.services.split import payer_receivable
from splitstack.services.stacks import StackOverview


def display_name(participant: Participant) -> str:
    return participant[:1].upper() + participant[1:]


def format_money(amount: Decimal) -> str:
    if amount < 0:
        return f"-${-amount:.2f}"
    return f"${amount:.2f}"


def format_timestamp(value: datetime, tz: ZoneInfo) -> str:
    return value.astimezone(tz).strftime("%b %d, %Y %H:%M")


def format_receipt_card(receipt: Receipt, roster: Sequence[Participant], *, position: str = "") -> str:
    title = escape(receipt.subject) if receipt.subject else "Untitled receipt"
    header = f"🧾 <b>{title}</b>"
    if position:
        header += f" ({position})"
    if receipt.is_completed:
        header += " ✅"

    lines = [header, f"👥 {len(receipt.active_participants)}/{len(roster)} friends"]

    lines.append("\n<b>Individual items</b>")
    for participant in receipt.active_participants:
        items = receipt.individual_items.get(participant, ())
        spent = sum((item.price for item in items), ZERO)
        lines.append(f"{display_name(participant)}: {format_money(spent)}")
        for idx, item in enumerate(items, start=1):
            lines.append(f"  {idx}. {escape(item.name)} {format_money(item.price)}")

    if receipt.shared_items:
        lines.append("\n<b>Shared items</b>")
        for idx, item in enumerate(receipt.shared_items, start=1):
            each = item.price / len(item.participants)
            who = ", ".join(display_name(p) for p in item.participants)
            lines.append(
                f"{idx}. {escape(item.name)} {format_money(item.price)} "
                f"({who}; {format_money(each)} each)"
            )

    lines.append("")
    lines.append(f"Subtotal: {format_money(receipt.subtotal)}")
    lines.append(f"Taxes: {format_money(receipt.taxes)}")
    lines.append(f"Tip: {format_money(receipt.tip)}")
    lines.append(f"<b>Total: {format_money(receipt.total)}</b>")
    lines.append(f"Paid by: {display_name(receipt.payer) if receipt.payer else '—'}")
    return "\n".join(lines)


def format_split_results(receipt: Receipt, splits: dict[Participant, Decimal], roster: Sequence[Participant]) -> str:
    payer = receipt.payer or ""
    lines = ["<b>Split calculation</b>"]
    for participant in roster:
        amount = splits.get(participant, ZERO)
        if amount <= 0:
            continue
        if participant == payer:
            receivable = receipt.total - amount
            lines.append(f"{display_name(participant)} paid and should receive: {format_money(receivable)}")
        else:
            lines.append(f"{display_name(participant)} owes {display_name(payer)}: {format_money(amount)}")
    return "\n".join(lines)


def format_overview(overview: StackOverview) -> str:
    """Render the overall dues card for a stack or a shared snapshot."""
    lines = ["💰 <b>Overall dues</b>"]
    total = overview.completed_count
    if total == 0:
        lines.append("No completed receipts yet. Save a receipt to see balances.")
        return "\n".join(lines)

    lines.append(f"Based on {total} completed receipt{'s' if total != 1 else ''}")

    if overview.participants:
        lines.append("\n<b>Net balances</b>")
        for participant in overview.participants:
            balance = overview.balances[participant]
            sign = "+" if balance > 0 else ""
            lines.append(f"{display_name(participant)}: {sign}{format_money(balance)}")

    if overview.debts:
        lines.append("\n<b>Who owes what to whom</b>")
        for debt in overview.debts:
            lines.append(
                f"{display_name(debt.from_participant)} → {display_name(debt.to_participant)}: "
                f"{format_money(debt.amount)}"
            )
    else:
        lines.append("\n🎉 All settled up! No money needs to change hands.")

    lines.append(f"\nNet transactions: {len(overview.debts)}")
    return "\n".join(lines)


def format_history(receipts: Sequence[Receipt], tz: ZoneInfo) -> str:
    completed = [receipt for receipt in receipts if receipt.is_completed]
    if not completed:
        return "No completed receipts yet!"

    lines = ["📚 <b>Receipt history</b>"]
    for receipt in completed:
        status = payment_status(receipt)
        badge = " ✓ All paid" if status.all_paid else ""
        subject = escape(receipt.subject) if receipt.subject else "Untitled receipt"
        lines.append(
            f"\n<b>{subject}</b>{badge}\n"
            f"Date: {format_timestamp(receipt.timestamp, tz)}\n"
            f"Total: {format_money(receipt.total)}\n"
            f"Paid by: {display_name(receipt.payer or '')} "
            f"(receives {format_money(payer_receivable(receipt))})\n"
            f"Payment status: {status.paid} / {status.total} paid"
        )
    return "\n".join(lines)


def format_stack_line(index: int, stack: Stack) -> str:
    completed = sum(1 for receipt in stack.receipts if receipt.is_completed)
    return (
        f"{index}. {escape(stack.name)} — {stack.date:%d.%m.%Y} "
        f"({len(stack.receipts)} receipts, {completed} completed)"
    )


def format_shared_snapshot(snapshot: SharedSnapshot, overview: StackOverview, tz: ZoneInfo) -> str:
    header = (
        f"🔗 <b>{escape(snapshot.stack_name)}</b> — {snapshot.stack_date:%d.%m.%Y}\n"
        f"Shared {format_timestamp(snapshot.shared_at, tz)} (read-only)"
    )
    return "\n\n".join([header, format_overview(overview), format_history(snapshot.receipts, tz)])
