"""Tests for configuration loading and JWT secret validation."""

import json

import pytest

from projekt_l.config import ConfigManager, _validate_jwt_secret_key


@pytest.mark.unit
class TestJwtSecretValidation:
    @pytest.mark.parametrize(
        "secret",
        ["", "zu-kurz", "a" * 40, "abababababababababababababababababab"],
    )
    def test_weak_secrets_exit(self, secret):
        with pytest.raises(SystemExit):
            _validate_jwt_secret_key(secret)

    def test_strong_secret_passes(self):
        _validate_jwt_secret_key("k9Xb2LqT7vW4mZp8Rt3Ny6Hc1Jd5Gf0EaUy")


@pytest.mark.unit
class TestConfigManager:
    @pytest.fixture
    def manager(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PROJEKT_L_DATA_DIR", str(tmp_path))
        monkeypatch.delenv("PROJEKT_L_DATABASE_URL", raising=False)
        monkeypatch.delenv("PROJEKT_L_DEBUG", raising=False)
        return ConfigManager()

    def test_defaults_without_file(self, manager, tmp_path):
        config = manager.load_config()

        assert manager.config_file == tmp_path / "config.json"
        assert config.app.starting_gold == 100
        assert config.app.data_dir == str(tmp_path)

    def test_save_and_reload(self, manager):
        manager.load_config()

        assert manager.update_config({"server.port": 9123, "app": {"starting_gold": 250}})

        saved = json.loads(manager.config_file.read_text(encoding="utf-8"))
        assert saved["server"]["port"] == 9123

        reloaded = ConfigManager().load_config()
        assert reloaded.server.port == 9123
        assert reloaded.app.starting_gold == 250

    def test_corrupt_file_falls_back_to_defaults(self, manager, tmp_path):
        (tmp_path / "config.json").write_text("{kaputt", encoding="utf-8")

        config = manager.load_config()

        assert config.app.starting_gold == 100

    def test_environment_overrides(self, manager, monkeypatch):
        monkeypatch.setenv("PROJEKT_L_DATABASE_URL", "sqlite:///anders.db")
        monkeypatch.setenv("PROJEKT_L_DEBUG", "true")

        config = manager.load_config()

        assert config.database.url == "sqlite:///anders.db"
        assert config.server.debug is True
        assert config.app.log_level == "DEBUG"
