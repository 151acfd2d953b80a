from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Snake Link"

    # Storage (JSON records)
    data_dir: str = Field(default="./data")

    # Force every sensor with hardware onto the mock reader (development)
    use_mock: bool = False

    # Logging
    log_file: str = "snakelink.log"
    log_level: str = "INFO"

    # Telegram alert channel; empty token => alerts are only logged
    telegram_bot_token: str = ""
    telegram_api_base: str = "https://api.telegram.org"
    telegram_timeout_seconds: float = 10.0
    telegram_commands_enabled: bool = True

    # Outbound notifications
    alerts_enabled: bool = True           # global kill switch
    notify_interval_ms: int = 500         # fixed window length
    notify_interval_cap: int = 2          # sends per window



settings = Settings()
