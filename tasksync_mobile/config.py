import typing
from pydantic_settings import BaseSettings
from pydantic import Field


class ClientSettings(BaseSettings):
    api_base_url: str = Field(default="http://localhost:3001")
    platform: typing.Literal["device", "web"] = Field(default="device")
    storage_dir: str = Field(default=".tasksync")
    storage_encryption_key: typing.Optional[str] = Field(default=None)

    token_refresh_margin_seconds: int = Field(default=14 * 60)
    request_timeout: float = Field(default=10.0)

    default_reminder_offsets: list[int] = Field(default=[60, 1440])
    daily_summary_hour: int = Field(default=9, ge=0, le=23)

    class Config:
        env_prefix = "TASKSYNC_"
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"
