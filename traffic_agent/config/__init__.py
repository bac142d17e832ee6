"""Configuración de targets SNMP.

Módulos:
- models: TargetConfig y credenciales (inmutables)
- loader: YAML + esquema pydantic → Config
- counters: tabla de contadores IF-MIB soportados
- errors: ConfigError / TargetConfigError
"""

from .errors import ConfigError, TargetConfigError
from .loader import load_config, parse_config
from .models import (
    Config,
    GraphDef,
    GraphDefMetric,
    SnmpTarget,
    SnmpV2cCredentials,
    SnmpV3Credentials,
    TargetConfig,
)

__all__ = [
    "Config",
    "ConfigError",
    "GraphDef",
    "GraphDefMetric",
    "SnmpTarget",
    "SnmpV2cCredentials",
    "SnmpV3Credentials",
    "TargetConfig",
    "TargetConfigError",
    "load_config",
    "parse_config",
]
