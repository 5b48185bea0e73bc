from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    bot_token: str = Field(..., alias="BOT_TOKEN")
    api_base_url: str = Field(default="http://localhost:5000", alias="BOOKING_API_BASE_URL")
    # None disables the client-side timeout entirely.
    api_timeout_sec: float | None = Field(default=None, alias="BOOKING_API_TIMEOUT_SEC")
    database_url: str = Field(
        default="sqlite+aiosqlite:///./app.db", alias="BOT_DATABASE_URL"
    )
    log_level: str = Field(default="INFO", alias="BOT_LOG_LEVEL")
    max_dashboards: int = Field(default=1000, alias="BOT_MAX_DASHBOARDS")

    model_config = SettingsConfigDict(env_file=".env", env_prefix="", extra="ignore")
