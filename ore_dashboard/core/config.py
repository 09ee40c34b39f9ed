"""
Configuration management using Pydantic Settings.
Values can be overridden with ORE_DASHBOARD_* environment variables or a .env file.
"""

from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment-based configuration."""

    # Application
    app_name: str = "Ore dashboard"
    app_version: str = "0.1.0"

    # Defaults for the add-account form
    default_rpc_url: str = "https://api.devnet.solana.com"
    default_keypair_path: str = str(Path.home() / ".config" / "solana" / "id.json")
    default_priority_fee: int = 10

    # Solana
    rpc_commitment: str = "confirmed"
    rpc_timeout: int = 30
    ore_program_id: str = "oreV2ZymfyeXgNgBdqMkumTqqAprVqgBWQfoYkrtKWQ"
    ore_mint_address: str = "oreoU2P8bN6jkk3jbaiVxYnG1dCXcYxwhwyK9jSybcp"
    token_decimals: int = 11
    claim_compute_unit_limit: int = 32_000

    # Refresh behaviour
    auto_refresh: bool = True
    fetch_mode: str = "concurrent"  # serial or concurrent
    data_interval: int = 60  # seconds
    save_interval: int = 5  # seconds
    price_interval: int = 60  # seconds
    active_period_seconds: int = 70

    # Persistence
    user_config_file: str = "user-config.json"

    # Price feed
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    price_token_id: str = "ore"
    price_currency: str = "usd"
    price_cache_seconds: int = 30

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # json or console
    log_file: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="ORE_DASHBOARD_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("fetch_mode")
    @classmethod
    def validate_fetch_mode(cls, v: str) -> str:
        allowed = ["serial", "concurrent"]
        if v.lower() not in allowed:
            raise ValueError(f"Fetch mode must be one of: {allowed}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()


# Global settings instance
settings = Settings()


class SolanaConfig:
    """Solana-specific configuration and constants."""

    LAMPORTS_PER_SOL = 1_000_000_000

    @staticmethod
    def get_rpc_config(endpoint: str) -> dict:
        """Get Solana RPC client configuration for one account endpoint."""
        return {
            "endpoint": endpoint,
            "commitment": settings.rpc_commitment,
            "timeout": settings.rpc_timeout,
        }
