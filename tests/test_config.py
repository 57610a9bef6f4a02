import logging
from zoneinfo import ZoneInfo

import pytest

from splitstack.config import Settings


def test_roster_is_normalised_and_deduplicated():
    settings = Settings(BOT_TOKEN="token", DATABASE_URL="postgresql://localhost/db", ROSTER=" Ann, bob ,ann,, ")

    assert settings.roster == ("ann", "bob")


def test_zoneinfo():
    settings = Settings(BOT_TOKEN="token", DATABASE_URL="postgresql://localhost/db", TZ="Europe/Paris")

    assert settings.zoneinfo == ZoneInfo("Europe/Paris")


def test_empty_roster_is_rejected():
    settings = Settings(BOT_TOKEN="token", DATABASE_URL="postgresql://localhost/db", ROSTER=" , ")

    with pytest.raises(ValueError):
        settings.roster


def test_operational_defaults():
    settings = Settings(BOT_TOKEN="token", DATABASE_URL="postgresql://localhost/db")

    assert settings.logging_level == logging.INFO
    assert (settings.db_pool_min_size, settings.db_pool_max_size) == (1, 5)
    assert settings.migrations_version_table == "splitstack_alembic_version"


def test_log_level_is_resolved_by_name():
    settings = Settings(BOT_TOKEN="token", DATABASE_URL="postgresql://localhost/db", LOG_LEVEL=" debug ")

    assert settings.logging_level == logging.DEBUG


def test_unknown_log_level_is_rejected():
    settings = Settings(BOT_TOKEN="token", DATABASE_URL="postgresql://localhost/db", LOG_LEVEL="chatty")

    with pytest.raises(ValueError):
        settings.logging_level
