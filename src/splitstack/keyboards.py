from __future__ import annotations

from typing import Sequence

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from splitstack.db.models import Participant, Receipt
from splitstack.services.format import display_name


def _nav_row(index: int, card_count: int) -> list[InlineKeyboardButton]:
    row: list[InlineKeyboardButton] = []
    if index > 0:
        row.append(InlineKeyboardButton(text="‹ Prev", callback_data="nav:prev"))
    row.append(InlineKeyboardButton(text=f"{index + 1} / {card_count}", callback_data="nav:noop"))
    if index < card_count - 1:
        row.append(InlineKeyboardButton(text="Next ›", callback_data="nav:next"))
    return row


def build_receipt_keyboard(receipt: Receipt, index: int, card_count: int) -> InlineKeyboardMarkup:
    rows: list[list[InlineKeyboardButton]] = []
    if not receipt.is_completed:
        rows.append(
            [
                InlineKeyboardButton(text="👥 Friends", callback_data="receipt:friends"),
                InlineKeyboardButton(text="💳 Who paid", callback_data="receipt:payer"),
            ]
        )
        rows.append(
            [
                InlineKeyboardButton(text="Calculate split", callback_data="receipt:split"),
                InlineKeyboardButton(text="Save receipt", callback_data="receipt:save"),
            ]
        )
    else:
        rows.append([InlineKeyboardButton(text="Clear form", callback_data="receipt:clear")])
    rows.append(_nav_row(index, card_count))
    rows.append([InlineKeyboardButton(text="＋ New receipt", callback_data="receipt:new")])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def build_overview_keyboard(index: int, card_count: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🔗 Share stack", callback_data="stack:share")],
            _nav_row(index, card_count),
        ]
    )


def friends_keyboard(receipt: Receipt, roster: Sequence[Participant]) -> InlineKeyboardMarkup:
    rows = [
        [
            InlineKeyboardButton(
                text=f"{'☑' if participant in receipt.active_participants else '☐'} {display_name(participant)}",
                callback_data=f"toggle:{participant}",
            )
        ]
        for participant in roster
    ]
    rows.append([InlineKeyboardButton(text="Done", callback_data="receipt:show")])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def payer_keyboard(receipt: Receipt) -> InlineKeyboardMarkup:
    rows = [
        [
            InlineKeyboardButton(
                text=f"{'● ' if participant == receipt.payer else ''}{display_name(participant)}",
                callback_data=f"payer:{participant}",
            )
        ]
        for participant in receipt.active_participants
    ]
    rows.append([InlineKeyboardButton(text="Back", callback_data="receipt:show")])
    return InlineKeyboardMarkup(inline_keyboard=rows)
