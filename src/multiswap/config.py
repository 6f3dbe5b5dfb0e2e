"""Application configuration using pydantic-settings.

All timing knobs of the orchestration core (debounce, balance polling,
remote signing timeout) live here so tests can shrink them.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Backend
    # ======================
    backend_base_url: str = Field(
        default="http://localhost:5000", description="Swap backend base URL"
    )
    http_timeout_seconds: float = Field(default=30.0, gt=0, description="HTTP timeout")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug logging")
    log_level: str = Field(default="INFO", description="Root log level")

    # ======================
    # Quotes
    # ======================
    quote_debounce_ms: Optional[int] = Field(
        default=None, ge=0, description="Override the per-chain quote debounce (ms)"
    )
    quote_ttl_seconds: int = Field(default=60, gt=0, description="Quote validity period")
    xrpl_default_slippage: Decimal = Field(default=Decimal("5"), ge=0, le=50)
    evm_default_slippage: Decimal = Field(default=Decimal("1"), ge=0, le=50)
    solana_default_slippage: Decimal = Field(default=Decimal("1"), ge=0, le=50)
    evm_chain_id: int = Field(default=1, description="Active EVM chain ID")

    # ======================
    # Fees
    # ======================
    platform_fee_percent: Decimal = Field(
        default=Decimal("1"), ge=0, le=100, description="Platform fee (1 = 1%)"
    )

    # ======================
    # Balance reconciliation
    # ======================
    balance_poll_interval_seconds: float = Field(default=2.0, gt=0)
    balance_poll_attempts: int = Field(default=5, ge=1)

    # ======================
    # Remote signing
    # ======================
    remote_signing_timeout_seconds: float = Field(
        default=600.0,
        gt=0,
        le=3600,
        description="Upper bound on waiting for a remote wallet signature",
    )
    pairing_poll_base_seconds: float = Field(default=1.0, gt=0)
    pairing_poll_factor: float = Field(default=1.5, ge=1)
    pairing_poll_cap_seconds: float = Field(default=5.0, gt=0)
    walletconnect_project_id: str = Field(default="", description="WalletConnect project ID")
    walletconnect_relay_url: str = Field(default="wss://relay.walletconnect.com")
    app_url: str = Field(default="https://localhost", description="Return URL for wallet apps")

    # ======================
    # Price feed
    # ======================
    coingecko_api_url: str = Field(default="https://api.coingecko.com/api/v3")
    coingecko_api_key: str = Field(default="", description="CoinGecko API key")
    price_cache_seconds: float = Field(default=30.0, ge=0)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "backend_base_url": self.backend_base_url,
            "quote_debounce_ms": self.quote_debounce_ms,
            "platform_fee_percent": str(self.platform_fee_percent),
            "balance_polling": {
                "interval_seconds": self.balance_poll_interval_seconds,
                "attempts": self.balance_poll_attempts,
            },
            "remote_signing": {
                "timeout_seconds": self.remote_signing_timeout_seconds,
                "walletconnect_project_id": "***" if self.walletconnect_project_id else "(not set)",
                "relay": self.walletconnect_relay_url,
            },
            "price_feed": {
                "url": self.coingecko_api_url,
                "api_key": "***" if self.coingecko_api_key else "(not set)",
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
