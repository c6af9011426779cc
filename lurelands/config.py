from typing import List, Tuple

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()

class Settings(BaseSettings):
    """Application configuration settings."""
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    # Flask settings
    SECRET_KEY: str = Field("change-me")
    DEBUG: bool = Field(False)
    HOST: str = Field("0.0.0.0")
    PORT: int = Field(8080)
    LOG_LEVEL: str | None = Field(None) # overrides the DEBUG-derived level

    # MongoDB settings - Load components individually
    MONGO_HOST: str = Field("localhost")
    MONGO_PORT: int = Field(27017)
    MONGO_USER: str | None = Field(None)
    MONGO_PASSWORD: str | None = Field(None)
    MONGO_DB_NAME: str = Field('lurelands')

    # World seed data
    SPAWN_POINTS: List[Tuple[float, float]] = Field(
        default_factory=lambda: [
            (400.0, 300.0),
            (1700.0, 300.0),
            (1000.0, 1000.0),
            (400.0, 1700.0),
            (1700.0, 1700.0),
        ]
    )
    SEED_ON_STARTUP: bool = Field(True)

    # Construct the URI from components
    @property
    def MONGO_URI(self) -> str:
        auth_source_db = "admin"
        if self.MONGO_USER and self.MONGO_PASSWORD:
            return f"mongodb://{self.MONGO_USER}:{self.MONGO_PASSWORD}@{self.MONGO_HOST}:{self.MONGO_PORT}/?authSource={auth_source_db}"
        return f"mongodb://{self.MONGO_HOST}:{self.MONGO_PORT}/"

# Create a single instance of settings to be imported elsewhere
settings = Settings()
