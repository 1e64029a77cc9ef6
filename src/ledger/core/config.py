
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # App
    DEBUG: bool = False
    LOG_LEVEL: str = "WARNING"

    # Data Paths
    # Default to a 'data' folder in the working directory if not specified
    DATA_DIR: Path = Path("data")
    CATEGORIES_FILE: str = "categories.csv"
    TRANSACTIONS_FILE: str = "transactions.csv"

    # Categorization
    CONFIDENCE_THRESHOLD: float = Field(default=0.8, ge=0.0, le=1.0)

    @property
    def categories_path(self) -> Path:
        return self.DATA_DIR / self.CATEGORIES_FILE

    @property
    def transactions_path(self) -> Path:
        return self.DATA_DIR / self.TRANSACTIONS_FILE

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
