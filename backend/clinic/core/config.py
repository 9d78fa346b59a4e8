from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    APP_NAME: str = "Clinic Patient Management"
    VERSION: str = "1.0.0"
    SECRET_KEY: str = "change-me-in-production-use-strong-random-key"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    DATABASE_URL: str = "sqlite:///./clinic.db"

    # Role used when the user lookup itself fails. Unset = fail closed (503).
    # Setting this re-enables the legacy degrade-to-default behaviour.
    ROLE_RESOLUTION_FALLBACK: Optional[str] = None

    SEED_DEMO_DATA: bool = True
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
