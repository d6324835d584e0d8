from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    bot_name: str = ""
    bot_token: str = ""
    debug: bool = False
    log_level: str = "INFO"

    session_backend: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite:///./sessions.db"

    # Unknown commands addressed to this bot continue to session/default handling
    unknown_command_fallthrough: bool = True

    webhook_path: str = "/telegram-webhook"
    api_base_url: str = "https://api.telegram.org"
    request_timeout: float = 30.0

    # Module exposing register(registry), imported when the app is built
    handlers_module: Optional[str] = None

    model_config = SettingsConfigDict(env_prefix="TGROUTER_", env_file=".env", extra="ignore")


settings = Settings()
