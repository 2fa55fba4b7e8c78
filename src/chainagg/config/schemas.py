"""Pydantic schemas for configuration validation."""

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Database Configuration
# =============================================================================


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    host: str = "localhost"
    port: int = 5432
    name: str = "chainagg"
    user: str = "postgres"
    password: str = "chainagg"
    url: str | None = None  # Used verbatim when set (e.g. sqlite:///chainagg.db)
    echo: bool = False

    @property
    def sync_url(self) -> str:
        """Get the SQLAlchemy database URL."""
        if self.url:
            return self.url
        return (
            f"postgresql://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.name}"
        )


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None


# =============================================================================
# Aggregation Configuration
# =============================================================================


class AggregationConfig(BaseModel):
    """Bucket sizes and windows of the aggregation ledgers."""

    bucket_span_seconds: int = Field(default=60 * 60, gt=0)
    window_buckets: int = Field(default=30 * 24, gt=0)
    candle_resolutions_minutes: list[int] = Field(
        default_factory=lambda: [1, 10, 60, 360, 1440, 10080]
    )
    daily_chunk_seconds: int = Field(default=24 * 60 * 60, gt=0)
    volume_window_seconds: int = Field(default=30 * 24 * 60 * 60, gt=0)

    @field_validator("candle_resolutions_minutes")
    @classmethod
    def check_resolutions(cls, v: list[int]) -> list[int]:
        """Resolutions must be positive, unique and ascending."""
        if not v:
            raise ValueError("At least one candle resolution is required")
        if any(r <= 0 for r in v):
            raise ValueError("Candle resolutions must be positive")
        if v != sorted(set(v)):
            raise ValueError("Candle resolutions must be unique and ascending")
        return v


# =============================================================================
# Protocol Configuration
# =============================================================================


class ProtocolDefaults(BaseModel):
    """Addresses used when the protocol configuration is created lazily."""

    stable_coin: str = "0x959922be3caee4b8cd9a407cc3ac1c251c2007b1"
    gov_token: str = "0x9a9f2ccfde556a7e9ff0848998aa4a0cfd8863ae"
    price_feed: str = "0xb7f8bc63bbcad18155201308c8f3540b07f84f5e"
    storage_pool: str = "0x0fc26941200010034df51c78f6142604a3788f49"
    reserve_pool: str = "0x8a791620dd6260079bf849dc5567adc3f2fdc318"
    staking_ops: str = "0x9a676e781a523b5d0c0e43731313a708cb607508"
    token_manager: str = "0x9a676e781a523b5d0c0e43731313a708cb607508"
    # Price updates for these feeds re-price additional staking rewards
    reward_oracle_ids: list[str] = Field(default_factory=list)

    @field_validator(
        "stable_coin",
        "gov_token",
        "price_feed",
        "storage_pool",
        "reserve_pool",
        "staking_ops",
        "token_manager",
    )
    @classmethod
    def lowercase_address(cls, v: str) -> str:
        """Normalize addresses to lowercase hex."""
        return v.lower()

    @field_validator("reward_oracle_ids")
    @classmethod
    def lowercase_ids(cls, v: list[str]) -> list[str]:
        return [i.lower() for i in v]


# =============================================================================
# Settings (Root Config)
# =============================================================================


class SettingsConfig(BaseModel):
    """Root settings configuration."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    aggregation: AggregationConfig = Field(default_factory=AggregationConfig)
    protocol: ProtocolDefaults = Field(default_factory=ProtocolDefaults)
