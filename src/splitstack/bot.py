from __future__ import annotations

import asyncio

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from splitstack.config import get_settings
from splitstack.db.repo import Database, SharedStackStore, StackRepository, set_global_repository
from splitstack.handlers import basic_router, receipts_router, stacks_router
from splitstack.logging import configure_logging, get_logger


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.logging_level)
    bot = Bot(token=settings.bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    dp = Dispatcher()
    db = Database(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        command_timeout=settings.db_command_timeout,
    )
    await db.connect()

    set_global_repository(StackRepository(db, settings.roster), SharedStackStore(db))

    dp.include_router(basic_router)
    dp.include_router(stacks_router)
    dp.include_router(receipts_router)

    log = get_logger(__name__)
    log.info("bot.start", roster=list(settings.roster))
    try:
        await dp.start_polling(bot)
    finally:
        await db.close()
        await bot.session.close()
        log.info("bot.stop")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
