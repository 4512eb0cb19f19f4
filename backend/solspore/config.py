"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from solspore.services.solana.config import SolanaConfig

logger = logging.getLogger(__name__)


class OddsConfig(BaseModel):
    """Odds publication parameters."""

    margin: float = 0.05  # Platform edge subtracted from fair odds
    min_odds: float = 1.10
    max_odds: float = 10.00
    default_odds: float = 2.00


class LedgerConfig(BaseModel):
    """Bet acceptance parameters."""

    stake_update_attempts: int = 5
    verify_payments: bool = False


class SettlementConfig(BaseModel):
    """Settlement sweep parameters."""

    max_attempts: int = 3
    retry_delay_seconds: float = 1.0
    db_connect_attempts: int = 5
    db_connect_delay_seconds: float = 2.0
    sweep_interval_minutes: int = 5
    payout_mode: Literal["simulated", "escrow"] = "simulated"


class AuthConfig(BaseModel):
    """Signed identity token parameters."""

    jwt_secret: str = "dev-secret-key-change-in-production-min-32-chars"
    jwt_algorithm: str = "HS256"
    token_ttl_hours: int = 168
    cookie_name: str = "auth_token"


class Settings(BaseSettings):
    """Main configuration class."""

    # Application
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production",
    )
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins",
    )

    # Database
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "solspore"

    # Logging / observability
    log_level: str = "INFO"
    logfire_token: str = ""

    # Paths
    data_dir: Path = Path("data")

    # Nested configuration sections
    odds: OddsConfig = Field(default_factory=OddsConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    settlement: SettlementConfig = Field(default_factory=SettlementConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    solana: SolanaConfig = Field(default_factory=SolanaConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("data_dir", mode="after")
    @classmethod
    def resolve_data_dir(cls, v: Path) -> Path:
        """Resolve data directory to absolute path."""
        return v.resolve()

    @property
    def cors_origins(self) -> List[str]:
        """Parse comma-separated origins into a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def load_yaml_config(self) -> None:
        """Load and merge YAML configuration."""
        config_path = self.data_dir / "config.yaml"

        if not config_path.exists():
            logger.debug(f"Config file not found: {config_path}. Using defaults.")
            return

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)

            if not yaml_config:
                logger.warning(f"Empty config file: {config_path}")
                return

            for section_name in ["odds", "ledger", "settlement", "auth", "solana"]:
                if section_name in yaml_config:
                    section = getattr(self, section_name)
                    section_dict = section.model_dump()
                    section_dict.update(yaml_config[section_name])
                    setattr(self, section_name, section.__class__(**section_dict))

            logger.info(f"Loaded configuration from {config_path}")

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise


@lru_cache()
def get_settings() -> Settings:
    """Get singleton Settings instance."""
    settings = Settings()
    settings.load_yaml_config()
    return settings
