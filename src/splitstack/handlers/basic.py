from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.types import CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup, Message

from splitstack.handlers.stacks import render_shared
from splitstack.state import state

basic_router = Router()

SHARE_LINK_PREFIX = "view_"

HELP_TEXT = (
    "<b>📖 Commands</b>\n\n"
    "<b>Stacks:</b>\n"
    "/newstack [name] | [date] - start a hangout\n"
    "/stacks - list your stacks\n"
    "/open [number] - switch stack\n"
    "/rename [name] - rename the stack\n"
    "/delstack - delete the current stack\n"
    "/balance - overall dues\n"
    "/history - completed receipts\n"
    "/share - read-only link\n"
    "/view [code] - open a shared stack\n\n"
    "<b>Receipts:</b>\n"
    "/receipt - show the current receipt\n"
    "/newreceipt, /delreceipt\n"
    "/subject [text]\n"
    "/item [friend] | [name] | [price]\n"
    "/rmitem [friend] | [number]\n"
    "/shared [name] | [price] | [friends or all]\n"
    "/rmshared [number]\n"
    "/tax [amount], /tip [amount]\n"
    "/payer [friend], /toggle [friend]\n"
    "/split - preview, /save - finalize, /clear\n"
    "/paid [friend], /unpaid [friend]"
)


def get_main_menu_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="📚 Current receipt", callback_data="receipt:show")],
        [InlineKeyboardButton(text="ℹ️ Help", callback_data="menu:help")],
    ])


@basic_router.message(CommandStart())
async def cmd_start(message: Message, command: CommandObject) -> None:
    user = message.from_user
    if not user:
        return

    # deep link from a shared stack
    if command.args and command.args.startswith(SHARE_LINK_PREFIX):
        await message.answer(await render_shared(command.args[len(SHARE_LINK_PREFIX):]))
        return

    state.clear_user(user.id)
    await message.answer(
        f"👋 Hi, {user.first_name}!\n\n"
        "I split receipts between friends: individual items, shared items, tax and tip.\n\n"
        "Start a hangout with /newstack <name>.",
        reply_markup=get_main_menu_keyboard(),
    )


@basic_router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)


@basic_router.callback_query(F.data == "menu:help")
async def cb_help_menu(callback: CallbackQuery) -> None:
    await callback.message.answer(HELP_TEXT)
    await callback.answer()
