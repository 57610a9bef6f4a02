from __future__ import annotations

from html import escape
from typing import Callable, Optional

from aiogram.types import InlineKeyboardMarkup

from splitstack.config import get_settings
from splitstack.db.models import Receipt, Stack
from splitstack.db.repo import StackRepository, get_global_repository
from splitstack.keyboards import build_overview_keyboard, build_receipt_keyboard
from splitstack.services.format import format_overview, format_receipt_card
from splitstack.services.stacks import build_overview, completed_receipts, replace_receipt
from splitstack.state import state

NO_STACK_TEXT = "No stack selected. Create one with /newstack or pick one with /stacks."


class NoStackSelected(LookupError):
    pass


class OverviewSelected(LookupError):
    pass


def get_repo() -> StackRepository:
    return get_global_repository()


def card_count(stack: Stack) -> int:
    """Receipts plus the overall dues card once anything is completed."""
    return len(stack.receipts) + (1 if completed_receipts(stack) else 0)


def current_index(user_id: int, stack: Stack) -> int:
    index = state.get_receipt_index(user_id)
    return max(0, min(index, card_count(stack) - 1))


async def load_current_stack(user_id: int) -> Stack:
    stack_id = state.get_current_stack(user_id)
    if stack_id is None:
        raise NoStackSelected(NO_STACK_TEXT)
    stack = await get_repo().get_stack(user_id, stack_id)
    if stack is None:
        state.clear_user(user_id)
        raise NoStackSelected(NO_STACK_TEXT)
    return stack


def current_receipt(user_id: int, stack: Stack) -> tuple[int, Receipt]:
    index = current_index(user_id, stack)
    if index >= len(stack.receipts):
        # the overview card is selected; edits go to the last receipt
        index = len(stack.receipts) - 1
    return index, stack.receipts[index]


def selected_receipt_index(user_id: int, stack: Stack) -> int:
    """Index of the selected receipt; the overall dues card is not a receipt."""
    index = current_index(user_id, stack)
    if index >= len(stack.receipts):
        raise OverviewSelected("The overall dues card is selected. Open a receipt first.")
    return index


def render_card(stack: Stack, index: int) -> tuple[str, InlineKeyboardMarkup]:
    roster = get_settings().roster
    count = card_count(stack)
    header = f"📚 <b>{escape(stack.name)}</b> — {stack.date:%d.%m.%Y}\n\n"
    if index >= len(stack.receipts):
        overview = build_overview(stack.receipts, roster)
        return header + format_overview(overview), build_overview_keyboard(index, count)

    receipt = stack.receipts[index]
    body = format_receipt_card(receipt, roster, position=f"{index + 1}/{len(stack.receipts)}")
    return header + body, build_receipt_keyboard(receipt, index, count)


async def update_current_receipt(
    user_id: int,
    transform: Callable[[Receipt], Receipt],
) -> tuple[Stack, int]:
    stack = await load_current_stack(user_id)
    index, receipt = current_receipt(user_id, stack)
    updated = transform(receipt)
    if updated is not receipt:
        stack = replace_receipt(stack, index, updated)
        await get_repo().save_stack(user_id, stack)
    state.set_receipt_index(user_id, index)
    return stack, index


def error_text(exc: Exception) -> str:
    message: Optional[str] = str(exc) or None
    return f"⚠️ {message or exc.__class__.__name__}"
