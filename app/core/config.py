from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    # One day, same lifetime as the session cookie of the web app
    access_token_expire_minutes: int = Field(60 * 24, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Optional JSON file replacing the built-in syllabus
    syllabus_file: Optional[str] = Field(None, alias="SYLLABUS_FILE")

    demo_email: str = Field("demo@dojo.app", alias="DEMO_EMAIL")
    demo_password: str = Field("demo123", alias="DEMO_PASSWORD")
    seed_mark_learned: bool = Field(False, alias="SEED_MARK_LEARNED")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
