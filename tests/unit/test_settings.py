import json
import pytest
from decimal import Decimal

from rosacash.config import settings as settings_module
from rosacash.config.settings import ConfigLoader, Settings

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("DB_PATH", "BILL_MONTHS_AHEAD", "CURRENCY_SYMBOL", "LOG_LEVEL", "LAUNCHED_TOLERANCE"):
        monkeypatch.delenv(f"ROSACASH_{name}", raising=False)


@pytest.mark.unit
class TestConfigLoader:

    def test_user_config_wins(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings_module, "USER_CONFIG_DIR", tmp_path)
        (tmp_path / "settings.json").write_text(json.dumps({"db_path": "custom.db"}))

        assert ConfigLoader.load_settings_config() == {"db_path": "custom.db"}

    def test_falls_back_to_bundled_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings_module, "USER_CONFIG_DIR", tmp_path)

        config = ConfigLoader.load_settings_config()

        assert config["bill_months_ahead"] == 6
        assert config["currency_symbol"] == "R$"

    def test_missing_config(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings_module, "USER_CONFIG_DIR", tmp_path)

        with pytest.raises(FileNotFoundError, match="nope.json"):
            ConfigLoader.load_config("nope.json")


@pytest.mark.unit
class TestSettings:

    def test_defaults(self):
        settings = Settings.load({})

        assert settings.bill_months_ahead == 6
        assert settings.launched_tolerance == Decimal("0.01")

    def test_unknown_keys_are_ignored(self):
        settings = Settings.load({"db_path": "x.db", "theme": "dark"})

        assert settings.db_path == "x.db"

    def test_environment_overrides_file(self, monkeypatch):
        monkeypatch.setenv("ROSACASH_DB_PATH", "/tmp/env.db")
        monkeypatch.setenv("ROSACASH_BILL_MONTHS_AHEAD", "3")

        settings = Settings.load({"db_path": "file.db", "bill_months_ahead": 12})

        assert settings.db_path == "/tmp/env.db"
        assert settings.bill_months_ahead == 3

    def test_rejects_non_positive_horizon(self):
        with pytest.raises(ValueError):
            Settings(bill_months_ahead=0)
