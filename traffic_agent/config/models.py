"""Modelos inmutables de configuración de targets.

Un ``TargetConfig`` se entrega a los tickers y nunca se modifica: en una
recarga se reemplaza completo por el nuevo valor.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Union

SNMP_V2C = "v2c"
SNMP_V3 = "v3"

SEC_LEVEL_NOAUTH = "noauth"
SEC_LEVEL_AUTH = "auth"
SEC_LEVEL_PRIV = "priv"
SEC_LEVELS = (SEC_LEVEL_NOAUTH, SEC_LEVEL_AUTH, SEC_LEVEL_PRIV)

AUTH_PROTOCOLS = ("noauth", "md5", "sha", "sha224", "sha256", "sha384", "sha512")
PRIV_PROTOCOLS = ("nopriv", "des", "aes", "aes192", "aes256")


@dataclass(frozen=True)
class SnmpV2cCredentials:
    community: str

    @property
    def version(self) -> str:
        return SNMP_V2C


@dataclass(frozen=True)
class SnmpV3Credentials:
    security_level: str
    username: str
    auth_protocol: str = "noauth"
    auth_passphrase: str = field(default="", repr=False)
    privacy_protocol: str = "nopriv"
    privacy_passphrase: str = field(default="", repr=False)

    @property
    def version(self) -> str:
        return SNMP_V3


Credentials = Union[SnmpV2cCredentials, SnmpV3Credentials]


@dataclass(frozen=True)
class SnmpTarget:
    """Parámetros de conexión SNMP de un target."""
    host: str
    port: int
    credentials: Credentials

    @property
    def connection_key(self) -> str:
        """Clave host:port usada para serializar sesiones al mismo agente."""
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class GraphDefMetric:
    name: str
    display_name: str


@dataclass(frozen=True)
class GraphDef:
    """Definición de gráfico para un grupo de contadores personalizados."""
    name: str
    display_name: str
    unit: str
    metrics: tuple[GraphDefMetric, ...] = ()

    def to_payload(self) -> dict:
        return {
            "name": self.name,
            "displayName": self.display_name,
            "unit": self.unit,
            "metrics": [
                {"name": m.name, "displayName": m.display_name, "isStacked": False}
                for m in self.metrics
            ],
        }


@dataclass(frozen=True)
class TargetConfig:
    host_id: str
    snmp: SnmpTarget
    hostname: str = ""

    # reglas de polling
    counters: tuple[str, ...] = ()
    include_pattern: Optional[re.Pattern] = None
    exclude_pattern: Optional[re.Pattern] = None
    skip_down_interfaces: bool = False

    # contadores personalizados
    custom_oids: tuple[str, ...] = ()
    # (nombre de métrica, oid)
    custom_metric_oids: tuple[tuple[str, str], ...] = ()
    custom_graph_defs: tuple[GraphDef, ...] = ()

    @property
    def target_id(self) -> str:
        """Identidad lógica del target; única clave de reconciliación."""
        return f"host={self.snmp.host},port={self.snmp.port},hostID={self.host_id}"

    @property
    def display_hostname(self) -> str:
        return self.hostname or self.snmp.host


@dataclass(frozen=True)
class Config:
    api_key: str
    targets: tuple[TargetConfig, ...] = ()
