# smartqueue/core/config.py

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Values come straight from the process environment.
    model_config = SettingsConfigDict(extra="ignore")

    # The environment mode: 'local' or 'prod'
    ENV: str = "local"

    DATABASE_URL_LOCAL: str = "sqlite:///./smartqueue.db"
    DATABASE_URL_PROD: str = "sqlite:///./smartqueue.db"

    # Auth
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"

    # --- Queue admission ---
    AVERAGE_SERVICE_MINUTES: int = 5
    REQUIRE_VERIFIED_TICKET: bool = False

    # --- Companion matching ---
    MIN_OFFERED_PRICE: int = 10000
    WITHDRAWAL_FEE_PERCENT: int = 20
    INITIAL_SEARCH_RANGE: int = 5
    SEARCH_RANGE_STEP: int = 5
    MAX_SEARCH_RANGE: int = 50
    COMPANION_DISPLAY_LABEL: str = "(동행자)"
    # Withdrawal puts both parties back on the number they got at join time.
    RESTORE_QUEUE_NUMBER_ON_WITHDRAWAL: bool = True

    # --- Transactions ---
    TRANSACTION_MAX_ATTEMPTS: int = 5

    # --- Background jobs ---
    # Without migrations the schema is created from the models at startup.
    CREATE_TABLES_ON_STARTUP: bool = True
    SCHEDULER_ENABLED: bool = True
    SEARCH_RANGE_EXPANSION_INTERVAL_MINUTES: int = 1

    # --- HTTP ---
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_JOIN: str = "10/minute"
    RATE_LIMIT_MUTATION: str = "30/minute"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    @property
    def DATABASE_URL(self) -> str:
        return (
            self.DATABASE_URL_LOCAL if self.ENV == "local" else self.DATABASE_URL_PROD
        )


# Create a single instance of the settings
settings = Settings()
