"""Application settings, read from the environment or a .env file"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Hotel reservation API settings"""

    APP_NAME: str = "Hotel Reservation API"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Currency code reported next to every amount
    CURRENCY: str = "USD"

    # JWT
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Front-desk account seeded into the user store
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "admin123"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
