"""Configuration system using pydantic-settings with environment variable loading."""

from decimal import Decimal
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pricewatch.chains import resolve_chain


class FeedSettings(BaseSettings):
    """Price feed selection and provider credentials."""

    model_config = SettingsConfigDict(env_prefix="FEED_")

    provider: Literal["coingecko", "exchange"] = "coingecko"
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    coingecko_api_key: SecretStr = SecretStr("")
    exchange_id: str = "bybit"  # any ccxt exchange id with public spot tickers
    quote_currency: str = "USDT"


class MonitorSettings(BaseSettings):
    """Scheduled sampling, increase detection and alert evaluation.

    All fields configurable via MONITOR_ environment variable prefix.
    List fields accept JSON, e.g. MONITOR_TRACKED_CHAINS='["ethereum","bitcoin"]'.
    """

    model_config = SettingsConfigDict(env_prefix="MONITOR_")

    tracked_chains: list[str] = ["ethereum", "polygon"]
    watched_chains: list[str] = ["ethereum", "polygon", "bitcoin", "solana"]
    sampling_period_seconds: int = 300  # 5 minutes
    increase_threshold_pct: Decimal = Decimal("3.0")  # strict greater-than
    increase_window_seconds: int = 3600
    history_window_seconds: int = 86400
    call_timeout_seconds: float = 10.0  # per feed / notifier call
    shutdown_grace_seconds: float = 30.0
    ops_alert_recipient: str = "ops-alerts@example.com"
    delete_alert_on_failed_send: bool = True

    @field_validator("tracked_chains", "watched_chains")
    @classmethod
    def _canonical_chains(cls, value: list[str]) -> list[str]:
        # Fail at startup rather than every cycle; duplicates collapse in order
        return list(dict.fromkeys(resolve_chain(chain).value for chain in value))


class SwapSettings(BaseSettings):
    """Swap quote parameters."""

    model_config = SettingsConfigDict(env_prefix="SWAP_")

    fee_rate: Decimal = Decimal("0.03")  # 3% of the input amount
    source_chain: str = "ethereum"
    target_chain: str = "bitcoin"


class EmailSettings(BaseSettings):
    """SMTP transport settings."""

    model_config = SettingsConfigDict(env_prefix="EMAIL_")

    host: str = "localhost"
    port: int = 587
    use_ssl: bool = False  # implicit TLS (port 465)
    starttls: bool = True
    user: str = ""
    password: SecretStr = SecretStr("")
    sender: str = ""  # falls back to user when empty


class StorageSettings(BaseSettings):
    """SQLite persistence location."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    db_path: str = "data/prices.db"


class ApiSettings(BaseSettings):
    """HTTP API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 3000


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    feed: FeedSettings = FeedSettings()
    monitor: MonitorSettings = MonitorSettings()
    swap: SwapSettings = SwapSettings()
    email: EmailSettings = EmailSettings()
    storage: StorageSettings = StorageSettings()
    api: ApiSettings = ApiSettings()
