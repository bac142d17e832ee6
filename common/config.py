from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    # Un .env junto al repo permite fijar la API key sin tocar el YAML.
    repo_root = Path(__file__).resolve().parents[1]
    return str(repo_root / ".env")


@dataclass(frozen=True)
class Settings:
    mackerel_api_key: str
    mackerel_api_base: str

    log_level: str
    shutdown_timeout: float
    http_timeout: float

    snmp_timeout: float
    snmp_retries: int


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("TRAFFIC_AGENT_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    mackerel_api_key = os.getenv("MACKEREL_APIKEY", "")
    mackerel_api_base = os.getenv("MACKEREL_APIBASE", "https://api.mackerelio.com/")

    log_level = os.getenv("TRAFFIC_AGENT_LOG_LEVEL", "INFO").upper()
    shutdown_timeout = float(os.getenv("TRAFFIC_AGENT_SHUTDOWN_TIMEOUT", "60"))
    http_timeout = float(os.getenv("TRAFFIC_AGENT_HTTP_TIMEOUT", "30"))

    # Por request SNMP (no por ciclo completo).
    snmp_timeout = float(os.getenv("SNMP_TIMEOUT", "10"))
    snmp_retries = int(os.getenv("SNMP_RETRIES", "3"))

    return Settings(
        mackerel_api_key=mackerel_api_key,
        mackerel_api_base=mackerel_api_base,
        log_level=log_level,
        shutdown_timeout=shutdown_timeout,
        http_timeout=http_timeout,
        snmp_timeout=snmp_timeout,
        snmp_retries=snmp_retries,
    )
