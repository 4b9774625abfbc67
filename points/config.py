from datetime import timedelta
from decimal import Decimal
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .deposits import DepositPolicy
from .games import GamePolicy


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    SERVICE_NAME: str = "solspace-backend"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])

    # Deposits
    SYSTEM_ADDRESS: str = ""
    RPC_URL: str = "https://api.mainnet-beta.solana.com"
    RPC_TIMEOUT: float = 10.0
    SIGNATURE_SCAN_LIMIT: int = Field(default=25, ge=1, le=1000)
    POINTS_PER_SOL: int = 1000
    MIN_DEPOSIT_SOL: Decimal = Decimal("0.005")

    # Game events
    MAX_PROFIT_MULTIPLIER: float = 100
    MIN_EVENT_INTERVAL_MS: int = 800
    RATE_WINDOW_SECONDS: int = 60
    RATE_WINDOW_CAP: int = 120

    # Maintenance
    EVENT_RETENTION_DAYS: int = 30
    MAINTENANCE_INTERVAL_SECONDS: float = 300.0

    def deposit_policy(self) -> DepositPolicy:
        return DepositPolicy.from_sol(
            self.SYSTEM_ADDRESS,
            points_per_sol=self.POINTS_PER_SOL,
            min_deposit_sol=self.MIN_DEPOSIT_SOL,
            scan_limit=self.SIGNATURE_SCAN_LIMIT,
        )

    def game_policy(self) -> GamePolicy:
        return GamePolicy(
            max_profit_multiplier=self.MAX_PROFIT_MULTIPLIER,
            min_interval=timedelta(milliseconds=self.MIN_EVENT_INTERVAL_MS),
            rate_window=timedelta(seconds=self.RATE_WINDOW_SECONDS),
            rate_cap=self.RATE_WINDOW_CAP,
        )

    @property
    def retention(self) -> timedelta:
        return timedelta(days=self.EVENT_RETENTION_DAYS)


settings = Settings()
