from __future__ import annotations

from typing import Callable

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message

from splitstack.config import get_settings
from splitstack.db.models import LineItem, Receipt, SharedLineItem
from splitstack.handlers.common import (
    NoStackSelected,
    OverviewSelected,
    card_count,
    current_index,
    current_receipt,
    error_text,
    get_repo,
    load_current_stack,
    render_card,
    selected_receipt_index,
    update_current_receipt,
)
from splitstack.keyboards import friends_keyboard, payer_keyboard
from splitstack.logging import get_logger
from splitstack.services.errors import SplitStackError
from splitstack.services.format import format_split_results
from splitstack.services.receipts import (
    add_individual_item,
    add_shared_item,
    clear_receipt,
    finalize_receipt,
    remove_individual_item,
    remove_shared_item,
    set_payer,
    set_payment,
    set_subject,
    set_taxes,
    set_tip,
    toggle_participant,
)
from splitstack.services.split import compute_split
from splitstack.services.stacks import add_receipt, delete_receipt
from splitstack.state import state
from splitstack.utils.parse import parse_amount, parse_index, parse_participant, parse_participants

receipts_router = Router()

USER_ERRORS = (SplitStackError, NoStackSelected, OverviewSelected, ValueError, IndexError)


def _split_args(args: str | None, count: int, usage: str) -> list[str]:
    parts = [part.strip() for part in (args or "").split("|")]
    if len(parts) != count or not all(parts):
        raise ValueError(usage)
    return parts


async def _edit(message: Message, transform: Callable[[Receipt], Receipt]) -> None:
    user = message.from_user
    if not user:
        return
    try:
        stack, index = await update_current_receipt(user.id, transform)
    except USER_ERRORS as exc:
        await message.answer(error_text(exc))
        return
    text, keyboard = render_card(stack, index)
    await message.answer(text, reply_markup=keyboard)


async def _edit_callback(callback: CallbackQuery, transform: Callable[[Receipt], Receipt]) -> None:
    try:
        stack, index = await update_current_receipt(callback.from_user.id, transform)
    except USER_ERRORS as exc:
        await callback.answer(error_text(exc), show_alert=True)
        return
    text, keyboard = render_card(stack, index)
    await callback.message.edit_text(text, reply_markup=keyboard)
    await callback.answer()


@receipts_router.message(Command("receipt"))
async def cmd_receipt(message: Message) -> None:
    user = message.from_user
    if not user:
        return
    try:
        stack = await load_current_stack(user.id)
    except NoStackSelected as exc:
        await message.answer(str(exc))
        return
    text, keyboard = render_card(stack, current_index(user.id, stack))
    await message.answer(text, reply_markup=keyboard)


@receipts_router.message(Command("newreceipt"))
async def cmd_newreceipt(message: Message) -> None:
    user = message.from_user
    if not user:
        return
    try:
        stack = await load_current_stack(user.id)
    except NoStackSelected as exc:
        await message.answer(str(exc))
        return
    stack = add_receipt(stack, get_settings().roster)
    await get_repo().save_stack(user.id, stack)
    index = len(stack.receipts) - 1
    state.set_receipt_index(user.id, index)
    text, keyboard = render_card(stack, index)
    await message.answer(text, reply_markup=keyboard)


@receipts_router.message(Command("delreceipt"))
async def cmd_delreceipt(message: Message) -> None:
    user = message.from_user
    if not user:
        return
    try:
        stack = await load_current_stack(user.id)
        index = selected_receipt_index(user.id, stack)
        stack = delete_receipt(stack, index)
    except USER_ERRORS as exc:
        await message.answer(error_text(exc))
        return
    await get_repo().save_stack(user.id, stack)
    index = min(index, len(stack.receipts) - 1)
    state.set_receipt_index(user.id, index)
    text, keyboard = render_card(stack, index)
    await message.answer(text, reply_markup=keyboard)


@receipts_router.message(Command("subject"))
async def cmd_subject(message: Message, command: CommandObject) -> None:
    if not command.args:
        await message.answer("Usage: /subject <text>")
        return
    await _edit(message, lambda receipt: set_subject(receipt, command.args or ""))


@receipts_router.message(Command("item"))
async def cmd_item(message: Message, command: CommandObject) -> None:
    roster = get_settings().roster

    def transform(receipt: Receipt) -> Receipt:
        who, name, price = _split_args(command.args, 3, "Usage: /item <friend> | <name> | <price>")
        item = LineItem(name=name, price=parse_amount(price))
        return add_individual_item(receipt, parse_participant(who, roster), item)

    await _edit(message, transform)


@receipts_router.message(Command("rmitem"))
async def cmd_rmitem(message: Message, command: CommandObject) -> None:
    roster = get_settings().roster

    def transform(receipt: Receipt) -> Receipt:
        who, position = _split_args(command.args, 2, "Usage: /rmitem <friend> | <number>")
        return remove_individual_item(receipt, parse_participant(who, roster), parse_index(position))

    await _edit(message, transform)


@receipts_router.message(Command("shared"))
async def cmd_shared(message: Message, command: CommandObject) -> None:
    roster = get_settings().roster

    def transform(receipt: Receipt) -> Receipt:
        name, price, who = _split_args(command.args, 3, "Usage: /shared <name> | <price> | <friend> <friend> ... or all")
        participants = parse_participants(who, roster)
        if who.lower() == "all":
            participants = [p for p in participants if p in receipt.active_participants]
        item = SharedLineItem(name=name, price=parse_amount(price), participants=tuple(participants))
        return add_shared_item(receipt, item)

    await _edit(message, transform)


@receipts_router.message(Command("rmshared"))
async def cmd_rmshared(message: Message, command: CommandObject) -> None:
    await _edit(message, lambda receipt: remove_shared_item(receipt, parse_index(command.args or "")))


@receipts_router.message(Command("tax"))
async def cmd_tax(message: Message, command: CommandObject) -> None:
    await _edit(message, lambda receipt: set_taxes(receipt, parse_amount(command.args or "")))


@receipts_router.message(Command("tip"))
async def cmd_tip(message: Message, command: CommandObject) -> None:
    await _edit(message, lambda receipt: set_tip(receipt, parse_amount(command.args or "")))


@receipts_router.message(Command("payer"))
async def cmd_payer(message: Message, command: CommandObject) -> None:
    roster = get_settings().roster
    await _edit(message, lambda receipt: set_payer(receipt, parse_participant(command.args or "", roster)))


@receipts_router.message(Command("toggle"))
async def cmd_toggle(message: Message, command: CommandObject) -> None:
    roster = get_settings().roster
    await _edit(
        message,
        lambda receipt: toggle_participant(receipt, parse_participant(command.args or "", roster), roster),
    )


@receipts_router.message(Command("clear"))
async def cmd_clear(message: Message) -> None:
    roster = get_settings().roster
    await _edit(message, lambda receipt: clear_receipt(receipt, roster))


@receipts_router.message(Command("paid"))
async def cmd_paid(message: Message, command: CommandObject) -> None:
    roster = get_settings().roster
    await _edit(message, lambda receipt: set_payment(receipt, parse_participant(command.args or "", roster)))


@receipts_router.message(Command("unpaid"))
async def cmd_unpaid(message: Message, command: CommandObject) -> None:
    roster = get_settings().roster
    await _edit(
        message,
        lambda receipt: set_payment(receipt, parse_participant(command.args or "", roster), paid=False),
    )


async def _split_preview(user_id: int) -> str:
    stack = await load_current_stack(user_id)
    _, receipt = current_receipt(user_id, stack)
    splits = receipt.splits if receipt.is_completed else compute_split(receipt)
    return format_split_results(receipt, splits, get_settings().roster)


@receipts_router.message(Command("split"))
async def cmd_split(message: Message) -> None:
    user = message.from_user
    if not user:
        return
    try:
        text = await _split_preview(user.id)
    except USER_ERRORS as exc:
        await message.answer(error_text(exc))
        return
    await message.answer(text)


def _finalize(user_id: int) -> Callable[[Receipt], Receipt]:
    def transform(receipt: Receipt) -> Receipt:
        completed = finalize_receipt(receipt)
        get_logger(__name__).info("receipt.completed", user_id=user_id, receipt_id=receipt.id)
        return completed

    return transform


@receipts_router.message(Command("save"))
async def cmd_save(message: Message) -> None:
    user = message.from_user
    if not user:
        return
    await _edit(message, _finalize(user.id))


@receipts_router.callback_query(F.data == "receipt:show")
async def cb_show(callback: CallbackQuery) -> None:
    await _edit_callback(callback, lambda receipt: receipt)


@receipts_router.callback_query(F.data == "receipt:friends")
async def cb_friends(callback: CallbackQuery) -> None:
    try:
        stack = await load_current_stack(callback.from_user.id)
    except NoStackSelected as exc:
        await callback.answer(str(exc), show_alert=True)
        return
    _, receipt = current_receipt(callback.from_user.id, stack)
    await callback.message.edit_text(
        "Select friends for this hangout:",
        reply_markup=friends_keyboard(receipt, get_settings().roster),
    )
    await callback.answer()


@receipts_router.callback_query(F.data.startswith("toggle:"))
async def cb_toggle(callback: CallbackQuery) -> None:
    roster = get_settings().roster
    participant = callback.data.split(":", 1)[1]
    try:
        stack, index = await update_current_receipt(
            callback.from_user.id,
            lambda receipt: toggle_participant(receipt, participant, roster),
        )
    except USER_ERRORS as exc:
        await callback.answer(error_text(exc), show_alert=True)
        return
    await callback.message.edit_reply_markup(reply_markup=friends_keyboard(stack.receipts[index], roster))
    await callback.answer()


@receipts_router.callback_query(F.data == "receipt:payer")
async def cb_payer_menu(callback: CallbackQuery) -> None:
    try:
        stack = await load_current_stack(callback.from_user.id)
    except NoStackSelected as exc:
        await callback.answer(str(exc), show_alert=True)
        return
    _, receipt = current_receipt(callback.from_user.id, stack)
    await callback.message.edit_text("Who paid?", reply_markup=payer_keyboard(receipt))
    await callback.answer()


@receipts_router.callback_query(F.data.startswith("payer:"))
async def cb_payer(callback: CallbackQuery) -> None:
    participant = callback.data.split(":", 1)[1]
    await _edit_callback(callback, lambda receipt: set_payer(receipt, participant))


@receipts_router.callback_query(F.data == "receipt:split")
async def cb_split(callback: CallbackQuery) -> None:
    try:
        text = await _split_preview(callback.from_user.id)
    except USER_ERRORS as exc:
        await callback.answer(error_text(exc), show_alert=True)
        return
    await callback.message.answer(text)
    await callback.answer()


@receipts_router.callback_query(F.data == "receipt:save")
async def cb_save(callback: CallbackQuery) -> None:
    await _edit_callback(callback, _finalize(callback.from_user.id))


@receipts_router.callback_query(F.data == "receipt:clear")
async def cb_clear(callback: CallbackQuery) -> None:
    roster = get_settings().roster
    await _edit_callback(callback, lambda receipt: clear_receipt(receipt, roster))


@receipts_router.callback_query(F.data == "receipt:new")
async def cb_new(callback: CallbackQuery) -> None:
    user_id = callback.from_user.id
    try:
        stack = await load_current_stack(user_id)
    except NoStackSelected as exc:
        await callback.answer(str(exc), show_alert=True)
        return
    stack = add_receipt(stack, get_settings().roster)
    await get_repo().save_stack(user_id, stack)
    index = len(stack.receipts) - 1
    state.set_receipt_index(user_id, index)
    text, keyboard = render_card(stack, index)
    await callback.message.edit_text(text, reply_markup=keyboard)
    await callback.answer()


@receipts_router.callback_query(F.data.startswith("nav:"))
async def cb_nav(callback: CallbackQuery) -> None:
    user_id = callback.from_user.id
    direction = callback.data.split(":", 1)[1]
    if direction == "noop":
        await callback.answer()
        return
    try:
        stack = await load_current_stack(user_id)
    except NoStackSelected as exc:
        await callback.answer(str(exc), show_alert=True)
        return

    index = current_index(user_id, stack)
    if direction == "prev" and index > 0:
        index -= 1
    elif direction == "next" and index < card_count(stack) - 1:
        index += 1
    state.set_receipt_index(user_id, index)

    text, keyboard = render_card(stack, index)
    await callback.message.edit_text(text, reply_markup=keyboard)
    await callback.answer()
