from __future__ import annotations

from datetime import datetime
from html import escape

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message

from splitstack.config import get_settings
from splitstack.db.repo import get_global_share_store
from splitstack.handlers.common import NoStackSelected, error_text, get_repo, load_current_stack, render_card
from splitstack.logging import get_logger
from splitstack.services.errors import SplitStackError
from splitstack.services.format import format_history, format_overview, format_shared_snapshot, format_stack_line
from splitstack.services.sharing import load_shared, share_stack, share_url
from splitstack.services.stacks import build_overview, create_stack, rename_stack
from splitstack.state import state
from splitstack.utils.parse import parse_index, parse_stack_date

stacks_router = Router()


@stacks_router.message(Command("newstack"))
async def cmd_newstack(message: Message, command: CommandObject) -> None:
    user = message.from_user
    if not user:
        return
    settings = get_settings()
    parts = [part.strip() for part in (command.args or "").split("|", maxsplit=1)]
    if not parts[0]:
        await message.answer("Usage: /newstack <name> | [YYYY-MM-DD]")
        return

    today = datetime.now(settings.zoneinfo).date()
    try:
        stack_date = parse_stack_date(parts[1] if len(parts) > 1 else "", default=today)
    except ValueError as exc:
        await message.answer(error_text(exc))
        return

    stack = create_stack(parts[0], stack_date, settings.roster)
    await get_repo().save_stack(user.id, stack)
    state.set_current_stack(user.id, stack.id)
    get_logger(__name__).info("stack.created", user_id=user.id, stack_id=stack.id)

    text, keyboard = render_card(stack, 0)
    await message.answer(text, reply_markup=keyboard)


@stacks_router.message(Command("stacks"))
async def cmd_stacks(message: Message) -> None:
    user = message.from_user
    if not user:
        return
    stacks = await get_repo().list_stacks(user.id)
    if not stacks:
        await message.answer("No stacks yet. Create one with /newstack <name>.")
        return
    lines = ["<b>Your stacks</b>"]
    lines.extend(format_stack_line(idx, stack) for idx, stack in enumerate(stacks, start=1))
    lines.append("\nOpen one with /open <number>.")
    await message.answer("\n".join(lines))


@stacks_router.message(Command("open"))
async def cmd_open(message: Message, command: CommandObject) -> None:
    user = message.from_user
    if not user:
        return
    stacks = await get_repo().list_stacks(user.id)
    try:
        stack = stacks[parse_index(command.args or "")]
    except (ValueError, IndexError):
        await message.answer("Usage: /open <number from /stacks>")
        return

    index = len(stack.receipts) - 1
    state.set_current_stack(user.id, stack.id, index)
    text, keyboard = render_card(stack, index)
    await message.answer(text, reply_markup=keyboard)


@stacks_router.message(Command("rename"))
async def cmd_rename(message: Message, command: CommandObject) -> None:
    user = message.from_user
    if not user:
        return
    if not command.args:
        await message.answer("Usage: /rename <name>")
        return
    try:
        stack = await load_current_stack(user.id)
    except NoStackSelected as exc:
        await message.answer(str(exc))
        return
    stack = rename_stack(stack, command.args)
    await get_repo().save_stack(user.id, stack)
    await message.answer(f"Renamed to {escape(stack.name)}.")


@stacks_router.message(Command("delstack"))
async def cmd_delstack(message: Message) -> None:
    user = message.from_user
    if not user:
        return
    try:
        stack = await load_current_stack(user.id)
    except NoStackSelected as exc:
        await message.answer(str(exc))
        return
    await get_repo().delete_stack(user.id, stack.id)
    state.clear_user(user.id)
    get_logger(__name__).info("stack.deleted", user_id=user.id, stack_id=stack.id)
    await message.answer(f"Deleted <b>{escape(stack.name)}</b>. Pick another with /stacks.")


@stacks_router.message(Command("balance"))
async def cmd_balance(message: Message) -> None:
    user = message.from_user
    if not user:
        return
    try:
        stack = await load_current_stack(user.id)
    except NoStackSelected as exc:
        await message.answer(str(exc))
        return
    await message.answer(format_overview(build_overview(stack.receipts, get_settings().roster)))


@stacks_router.message(Command("history"))
async def cmd_history(message: Message) -> None:
    user = message.from_user
    if not user:
        return
    try:
        stack = await load_current_stack(user.id)
    except NoStackSelected as exc:
        await message.answer(str(exc))
        return
    await message.answer(format_history(stack.receipts, get_settings().zoneinfo))


async def _share_current(user_id: int) -> str:
    settings = get_settings()
    stack = await load_current_stack(user_id)
    shared = await share_stack(get_global_share_store(), stack)
    if shared is not stack:
        await get_repo().save_stack(user_id, shared)
    assert shared.share_id
    return (
        f"🔗 Read-only link for <b>{escape(shared.name)}</b>:\n"
        f"{share_url(settings.share_base_url, shared.share_id)}\n\n"
        f"Share code: <code>{shared.share_id}</code>"
    )


@stacks_router.message(Command("share"))
async def cmd_share(message: Message) -> None:
    user = message.from_user
    if not user:
        return
    try:
        text = await _share_current(user.id)
    except (SplitStackError, NoStackSelected) as exc:
        await message.answer(error_text(exc))
        return
    await message.answer(text)


@stacks_router.callback_query(F.data == "stack:share")
async def cb_share(callback: CallbackQuery) -> None:
    try:
        text = await _share_current(callback.from_user.id)
    except (SplitStackError, NoStackSelected) as exc:
        await callback.answer(error_text(exc), show_alert=True)
        return
    await callback.message.answer(text)
    await callback.answer()


async def render_shared(share_id: str) -> str:
    settings = get_settings()
    snapshot = await load_shared(get_global_share_store(), share_id, settings.roster)
    if snapshot is None:
        return "❌ Shared stack not found. Ask your friend for a fresh link."
    overview = build_overview(snapshot.receipts, settings.roster)
    return format_shared_snapshot(snapshot, overview, settings.zoneinfo)


@stacks_router.message(Command("view"))
async def cmd_view(message: Message, command: CommandObject) -> None:
    if not command.args:
        await message.answer("Usage: /view <share code>")
        return
    await message.answer(await render_shared(command.args))

