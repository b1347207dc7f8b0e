from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # `.env.prod` takes priority over `.env`
        env_file=(".env", ".env.prod"),
        extra="ignore",
        frozen=True,
    )

    database_url: str = "sqlite:///./job_board.db"

    # JWT secrets, one per token kind
    access_token_secret: Optional[str] = None
    refresh_token_secret: Optional[str] = None
    email_token_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"

    access_token_expire_minutes: int = 30
    refresh_token_expire_days: int = 30
    email_token_expire_minutes: int = 10

    bcrypt_rounds: int = 11

    # Frontend origin (CORS + links in verification emails)
    client_url: str = "http://localhost:5173"
    environment: str = "development"

    # SMTP settings (verification emails are only logged when unset)
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    email_from: Optional[str] = None

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
