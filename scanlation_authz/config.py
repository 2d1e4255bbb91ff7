# scanlation_authz/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    애플리케이션 설정을 관리합니다. 환경 변수와 .env 파일에서 값을 읽어옵니다.
    """
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # --- Database ---
    DATABASE_URL: str = "sqlite:///scanlation_authz.db"
    SQL_ECHO: bool = False

    # --- Logging ---
    LOG_LEVEL: str = "INFO"

    # --- Slug / Invite ---
    SLUG_MAX_ATTEMPTS: int = 8
    INVITE_TTL_DAYS: int = 7

    # --- Server ---
    HOST: str = ""
    PORT: int = 8000


settings = Settings()
