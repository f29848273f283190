import json
import os
from dataclasses import dataclass, fields
from decimal import Decimal
from pathlib import Path
from typing import Dict, Any, Optional

# Package defaults (bundled with code)
PACKAGE_CONFIG_DIR = Path(__file__).parent / "defaults"

# User configs (in project root, gitignored)
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
USER_CONFIG_DIR = PROJECT_ROOT / "config"

ENV_PREFIX = "ROSACASH_"

class ConfigLoader:
    """Load configuration with user overrides"""

    @staticmethod
    def load_config(config_name: str) -> Dict[str, Any]:
        """
        Load config with fallback: user config -> default config

        Args:
            config_name: Name of the config file (e.g., 'settings.json')

        Raises:
            FileNotFoundError: If no config file was found

        Returns:
            Parsed JSON configuration
        """
        user_config_path = USER_CONFIG_DIR / config_name
        if user_config_path.exists():
            with open(user_config_path) as f:
                return json.load(f)

        default_config_path = PACKAGE_CONFIG_DIR / config_name
        if default_config_path.exists():
            with open(default_config_path) as f:
                return json.load(f)

        raise FileNotFoundError(
            f"Config file '{config_name}' not found in:\n"
            f" - {user_config_path}\n"
            f" - {default_config_path}"
        )

    @staticmethod
    def load_settings_config() -> Dict[str, Any]:
        """Load application settings"""
        return ConfigLoader.load_config('settings.json')


@dataclass
class Settings:
    """Application settings. Environment variables (ROSACASH_DB_PATH, ...) win over files."""
    db_path: str = "data/rosacash.db"
    bill_months_ahead: int = 6
    currency_symbol: str = "R$"
    log_level: str = "WARNING"
    launched_tolerance: Decimal = Decimal("0.01")

    def __post_init__(self):
        self.bill_months_ahead = int(self.bill_months_ahead)
        self.launched_tolerance = Decimal(str(self.launched_tolerance))
        if self.bill_months_ahead < 1:
            raise ValueError(f"bill_months_ahead must be positive, got {self.bill_months_ahead}")

    @classmethod
    def load(cls, config: Optional[Dict[str, Any]] = None) -> "Settings":
        """
        Build settings from a config dict (or the config files) plus environment.

        Args:
            config: Optional config dict. If None, loads from ConfigLoader.
                Useful for testing with custom configs.
        """
        if config is None:
            config = ConfigLoader.load_settings_config()

        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in config.items() if key in known}

        for name in known:
            env_value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
            if env_value is not None:
                values[name] = env_value

        return cls(**values)
