from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    env: str = Field(default="production")
    debug: bool = Field(default=False)
    log_level: str = Field(default="ERROR")

    db_host: str = Field(default="localhost")
    db_port: int = Field(default=5432)
    db_name: str = Field(default="tasksync_db")
    db_user: str = Field(default="postgres")
    db_password: str = Field(default="postgres")
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)

    api_host: str = Field(default="0.0.0.0")
    api_http_port: int = Field(default=3001)
    api_workers: int = Field(default=1)

    jwt_secret_key: str = Field(...)
    jwt_algorithm: str = Field(default="HS256")
    jwt_access_token_expire_minutes: int = Field(default=15)
    jwt_refresh_token_expire_days: int = Field(default=7)

    google_client_id: str = Field(...)
    google_certs_url: str = Field(default="https://www.googleapis.com/oauth2/v3/certs")
    google_issuers: list[str] = Field(
        default=["accounts.google.com", "https://accounts.google.com"]
    )

    refresh_cookie_name: str = Field(default="refreshToken")

    cors_origins: str = Field(default="*")
    cors_allow_credentials: bool = Field(default=True)
    cors_allow_methods: str = Field(default="*")
    cors_allow_headers: str = Field(default="*")

    rate_limit_enabled: bool = Field(default=False)
    rate_limit_per_minute: int = Field(default=60)
    rate_limit_auth_per_minute: int = Field(default=20)

    token_cleanup_enabled: bool = Field(default=True)
    token_cleanup_interval_minutes: int = Field(default=60)

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    @property
    def database_url(self) -> str:
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def access_token_expires_in(self) -> int:
        return self.jwt_access_token_expire_minutes * 60

    @property
    def refresh_cookie_secure(self) -> bool:
        return self.env == "production"

    @property
    def refresh_cookie_max_age(self) -> int:
        return self.jwt_refresh_token_expire_days * 24 * 60 * 60

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]


settings = Settings()
