"""
Unit tests: settings loading.
"""

import pydantic
import pytest


class TestSettings:
    """Settings unit tests"""

    def test_defaults(self, monkeypatch):
        """Defaults apply when nothing is configured"""
        from orchestration.config import Settings

        for key in ("DRIVER", "NAMESPACE", "CPUS", "MEMORY", "SWAP", "USERNAME", "PASSWORD"):
            monkeypatch.delenv(f"ORCHESTRATION_{key}", raising=False)

        settings = Settings(_env_file=None)

        assert settings.driver == "docker-cli"
        assert settings.namespace == "utopia"
        assert settings.cpus == 0
        assert settings.memory == 0
        assert settings.has_credentials is False

    def test_environment_prefix(self, monkeypatch):
        """Values are read from ORCHESTRATION_ prefixed variables"""
        from orchestration.config import Settings

        monkeypatch.setenv("ORCHESTRATION_DRIVER", "docker-api")
        monkeypatch.setenv("ORCHESTRATION_MEMORY", "512")
        monkeypatch.setenv("ORCHESTRATION_NAMESPACE", "acme")

        settings = Settings(_env_file=None)

        assert settings.driver == "docker-api"
        assert settings.memory == 512
        assert settings.namespace == "acme"

    def test_overrides_win_over_environment(self, monkeypatch):
        from orchestration.config import load_settings

        monkeypatch.setenv("ORCHESTRATION_CPUS", "2")

        assert load_settings(_env_file=None, cpus=0.5).cpus == 0.5

    def test_settings_are_frozen(self, settings):
        """Settings cannot change after construction"""
        with pytest.raises(pydantic.ValidationError):
            settings.namespace = "other"

    def test_invalid_values(self):
        from orchestration.config import Settings

        with pytest.raises(pydantic.ValidationError):
            Settings(_env_file=None, driver="podman")

        with pytest.raises(pydantic.ValidationError):
            Settings(_env_file=None, memory=-1)

    def test_has_credentials(self, settings):
        assert settings.has_credentials is False
        assert settings.model_copy(update={"username": "user"}).has_credentials is False
        assert settings.model_copy(
            update={"username": "user", "password": "secret"}
        ).has_credentials is True
