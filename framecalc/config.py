"""FrameCalc configuration management.

Loads configuration from environment variables with sensible defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

_VALID_SCOPES = ("full", "basement")


@dataclass
class CalculationConfig:
    """Duration calculation defaults."""

    # Pump-car fleet cap used when a building does not declare its own
    default_pump_car_count: int = 2
    default_category_scope: str = "full"  # full or basement


@dataclass
class StoreConfig:
    """Plan store location."""

    plan_dir: Path = field(default_factory=lambda: Path("plans"))


@dataclass
class AppConfig:
    """Root application configuration."""

    log_level: str = "INFO"
    log_format: str = "text"  # json or text

    calculation: CalculationConfig = field(default_factory=CalculationConfig)
    store: StoreConfig = field(default_factory=StoreConfig)

    # Alternative process module catalog (defaults to the bundled YAML)
    catalog_override: Path | None = None

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Optional (with defaults):
        - LOG_LEVEL: Logging verbosity (default: "INFO")
        - LOG_FORMAT: "text" or "json" (default: "text")
        - DEFAULT_PUMP_CAR_COUNT: Equipment cap when a building has none (default: 2)
        - DEFAULT_CATEGORY_SCOPE: "full" or "basement" (default: "full")
        - PLAN_STORE_DIR: Directory for JSON plan files (default: "./plans")
        - PROCESS_MODULES_PATH: Alternative catalog YAML

        Raises:
            ValueError: If a numeric or enumerated setting is malformed
        """
        scope = os.getenv("DEFAULT_CATEGORY_SCOPE", "full").strip().lower()
        if scope not in _VALID_SCOPES:
            raise ValueError(
                f"DEFAULT_CATEGORY_SCOPE must be one of {_VALID_SCOPES}, got '{scope}'"
            )

        pump_car_count = int(os.getenv("DEFAULT_PUMP_CAR_COUNT", "2"))
        if pump_car_count < 1:
            raise ValueError("DEFAULT_PUMP_CAR_COUNT must be at least 1")

        catalog_path = os.getenv("PROCESS_MODULES_PATH")

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
            calculation=CalculationConfig(
                default_pump_car_count=pump_car_count,
                default_category_scope=scope,
            ),
            store=StoreConfig(plan_dir=Path(os.getenv("PLAN_STORE_DIR", "plans"))),
            catalog_override=Path(catalog_path) if catalog_path else None,
        )

    @property
    def catalog_path(self) -> Path:
        """Path to the process module catalog YAML."""
        if self.catalog_override is not None:
            return self.catalog_override
        return Path(__file__).parent / "catalog" / "process_modules.yaml"


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment.

    Returns:
        AppConfig: Application configuration
    """
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next call re-reads the environment."""
    global _config
    _config = None
