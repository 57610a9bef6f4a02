from __future__ import annotations

import logging
from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ROSTER = "beatrice,farin,tiffany,monica,andrew,marisa"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    bot_token: str = Field(..., alias="BOT_TOKEN")
    database_url: str = Field(..., alias="DATABASE_URL")
    tz: str = Field("UTC", alias="TZ")
    roster_names: str = Field(DEFAULT_ROSTER, alias="ROSTER")
    share_base_url: str = Field("https://t.me/splitstack_bot?start=view_", alias="SHARE_BASE_URL")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    db_pool_min_size: int = Field(1, alias="DB_POOL_MIN_SIZE", ge=1)
    db_pool_max_size: int = Field(5, alias="DB_POOL_MAX_SIZE", ge=1)
    db_command_timeout: float = Field(10.0, alias="DB_COMMAND_TIMEOUT", gt=0)
    migrations_version_table: str = Field("splitstack_alembic_version", alias="MIGRATIONS_VERSION_TABLE")

    @property
    def zoneinfo(self) -> ZoneInfo:
        return ZoneInfo(self.tz)

    @property
    def logging_level(self) -> int:
        level = logging.getLevelName(self.log_level.strip().upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown LOG_LEVEL: {self.log_level}")
        return level

    @property
    def roster(self) -> tuple[str, ...]:
        names: list[str] = []
        for raw in self.roster_names.split(","):
            name = raw.strip().lower()
            if name and name not in names:
                names.append(name)
        if not names:
            raise ValueError("ROSTER must name at least one participant")
        return tuple(names)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
