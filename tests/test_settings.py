"""Tests de settings por variables de entorno."""

import os

import pytest

from common.config import get_settings


@pytest.fixture(autouse=True)
def isolated_environ(monkeypatch):
    # load_dotenv escribe directamente en os.environ
    monkeypatch.setattr(os, "environ", os.environ.copy())
    for name in ("MACKEREL_APIKEY", "MACKEREL_APIBASE", "TRAFFIC_AGENT_LOG_LEVEL",
                 "TRAFFIC_AGENT_SHUTDOWN_TIMEOUT", "SNMP_TIMEOUT", "SNMP_RETRIES"):
        os.environ.pop(name, None)


class TestSettings:

    def test_defaults(self, tmp_path):
        os.environ["TRAFFIC_AGENT_ENV_FILE"] = str(tmp_path / "missing.env")

        settings = get_settings()

        assert settings.mackerel_api_key == ""
        assert settings.mackerel_api_base == "https://api.mackerelio.com/"
        assert settings.log_level == "INFO"
        assert settings.shutdown_timeout == 60.0
        assert settings.snmp_retries == 3

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("TRAFFIC_AGENT_LOG_LEVEL=debug\nSNMP_TIMEOUT=2.5\n")
        os.environ["TRAFFIC_AGENT_ENV_FILE"] = str(env_file)

        settings = get_settings()

        assert settings.log_level == "DEBUG"
        assert settings.snmp_timeout == 2.5

    def test_real_environment_wins(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("SNMP_RETRIES=9\n")
        os.environ["TRAFFIC_AGENT_ENV_FILE"] = str(env_file)
        os.environ["SNMP_RETRIES"] = "1"

        assert get_settings().snmp_retries == 1
