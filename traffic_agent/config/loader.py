"""Carga del archivo YAML de configuración.

Flujo:
1. ``yaml.safe_load`` del archivo
2. Validación de esquema con pydantic (raíz + cada target por separado)
3. Conversión a ``TargetConfig`` inmutables

Un target inválido se descarta con un warning; el resto continúa. La
falta de API key es fatal.
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .counters import validate_counters, validate_custom_oid
from .errors import ConfigError, TargetConfigError
from .models import (
    AUTH_PROTOCOLS,
    PRIV_PROTOCOLS,
    SEC_LEVELS,
    SNMP_V2C,
    SNMP_V3,
    Config,
    GraphDef,
    GraphDefMetric,
    SnmpTarget,
    SnmpV2cCredentials,
    SnmpV3Credentials,
    TargetConfig,
)

logger = logging.getLogger(__name__)

DEFAULT_SNMP_PORT = 161

METRIC_NAME_RE = re.compile(r"^[a-zA-Z0-9._-]+$")


# ---------------------------------------------------------------------------
# Esquema YAML
# ---------------------------------------------------------------------------


class InterfaceFilterSchema(BaseModel):
    include: Optional[str] = None
    exclude: Optional[str] = None


class CustomOidSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    display_name: str = Field(default="", alias="display-name")
    metric_name: str = Field(..., alias="metric-name")
    mib: str

    @field_validator("metric_name")
    @classmethod
    def validate_metric_name(cls, v: str) -> str:
        if not METRIC_NAME_RE.match(v):
            raise ValueError(f"metricName is not valid : {v}")
        return v


class CustomGroupSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    display_name: str = Field(default="", alias="display-name")
    unit: str = ""
    mibs: list[CustomOidSchema] = Field(default_factory=list)


class TargetSchema(BaseModel):
    """Esquema de un elemento de ``collector:``."""

    model_config = ConfigDict(populate_by_name=True)

    host_id: str = Field(default="", alias="host-id")
    hostname: str = ""

    host: str = ""
    port: int = Field(default=DEFAULT_SNMP_PORT, ge=0, le=65535)
    version: str = SNMP_V2C

    # v2c
    community: str = ""

    # v3
    security: str = ""
    username: str = ""
    auth_protocol: str = Field(default="noauth", alias="auth-protocol")
    auth_password: str = Field(default="", alias="auth-password")
    priv_protocol: str = Field(default="nopriv", alias="priv-protocol")
    priv_password: str = Field(default="", alias="priv-password")

    interface: Optional[InterfaceFilterSchema] = None
    mibs: list[str] = Field(default_factory=list)
    skip_linkdown: bool = Field(default=False, alias="skip-linkdown")
    custom_mibs: list[CustomGroupSchema] = Field(default_factory=list, alias="custom-mibs")

    @field_validator("port", mode="before")
    @classmethod
    def default_port(cls, v: Any) -> Any:
        # port: 0 / vacío equivale a no configurado
        if v in (None, "", 0):
            return DEFAULT_SNMP_PORT
        return v

    @field_validator("version", mode="before")
    @classmethod
    def default_version(cls, v: Any) -> Any:
        return v or SNMP_V2C


class RootSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_key: str = Field(default="", alias="x-api-key")
    collector: list[Any] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Conversión
# ---------------------------------------------------------------------------


def custom_graph_name(graph_display_name: str) -> str:
    digest = hashlib.md5(graph_display_name.encode("utf-8")).hexdigest()
    return f"custom.custommibs.{digest}"


def custom_metric_name(graph_display_name: str, metric_name: str) -> str:
    return f"{custom_graph_name(graph_display_name)}.{metric_name}"


def _build_credentials(t: TargetSchema):
    if t.version == SNMP_V2C:
        if not t.community:
            raise TargetConfigError("community is needed")
        return SnmpV2cCredentials(community=t.community)

    if t.version == SNMP_V3:
        security = t.security.lower()
        if security not in SEC_LEVELS:
            raise TargetConfigError(f"invalid security level : {t.security}")
        if not t.username:
            raise TargetConfigError("username is needed")
        auth = t.auth_protocol.lower()
        if auth not in AUTH_PROTOCOLS:
            raise TargetConfigError(f"invalid auth-protocol : {t.auth_protocol}")
        priv = t.priv_protocol.lower()
        if priv not in PRIV_PROTOCOLS:
            raise TargetConfigError(f"invalid priv-protocol : {t.priv_protocol}")
        return SnmpV3Credentials(
            security_level=security,
            username=t.username,
            auth_protocol=auth,
            auth_passphrase=t.auth_password,
            privacy_protocol=priv,
            privacy_passphrase=t.priv_password,
        )

    raise TargetConfigError(f"invalid snmp protocol version (v2c, v3) : {t.version}")


def _compile(pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise TargetConfigError(f"invalid interface pattern {pattern!r}: {e}") from e


def _build_custom(t: TargetSchema) -> tuple[tuple[str, ...], tuple[tuple[str, str], ...], tuple[GraphDef, ...]]:
    oids: list[str] = []
    metric_oids: list[tuple[str, str]] = []
    graph_defs: list[GraphDef] = []

    for group in t.custom_mibs:
        metrics: list[GraphDefMetric] = []
        for item in group.mibs:
            name = custom_metric_name(group.display_name, item.metric_name)
            oid = validate_custom_oid(item.mib)
            metrics.append(GraphDefMetric(
                name=name,
                display_name=item.display_name or item.metric_name,
            ))
            oids.append(oid)
            metric_oids.append((name, oid))

        graph_defs.append(GraphDef(
            name=custom_graph_name(group.display_name),
            display_name=group.display_name,
            unit=group.unit,
            metrics=tuple(metrics),
        ))

    return tuple(oids), tuple(metric_oids), tuple(graph_defs)


def convert_target(t: TargetSchema) -> TargetConfig:
    """Convierte un target validado por esquema en ``TargetConfig``.

    Raises:
        TargetConfigError: si el target no es utilizable
    """
    if not t.host:
        raise TargetConfigError("host is needed")
    if not t.host_id:
        raise TargetConfigError("host-id is needed")

    credentials = _build_credentials(t)

    include = exclude = None
    if t.interface is not None:
        if t.interface.include is not None and t.interface.exclude is not None:
            raise TargetConfigError("interface.include and interface.exclude are exclusive")
        if t.interface.include is not None:
            include = _compile(t.interface.include)
        if t.interface.exclude is not None:
            exclude = _compile(t.interface.exclude)

    custom_oids, custom_metric_oids, graph_defs = _build_custom(t)

    return TargetConfig(
        host_id=t.host_id,
        hostname=t.hostname,
        snmp=SnmpTarget(host=t.host, port=t.port, credentials=credentials),
        counters=validate_counters(t.mibs),
        include_pattern=include,
        exclude_pattern=exclude,
        skip_down_interfaces=t.skip_linkdown,
        custom_oids=custom_oids,
        custom_metric_oids=custom_metric_oids,
        custom_graph_defs=graph_defs,
    )


def parse_config(raw: Any) -> Config:
    """Convierte el documento YAML ya cargado en ``Config``."""
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("config root must be a mapping")

    try:
        root = RootSchema.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"invalid config: {e}") from e

    api_key = os.getenv("MACKEREL_APIKEY") or root.api_key
    if not api_key:
        raise ConfigError("x-api-key is needed")

    targets: list[TargetConfig] = []
    for index, entry in enumerate(root.collector):
        try:
            schema = TargetSchema.model_validate(entry)
            targets.append(convert_target(schema))
        except (ValidationError, TargetConfigError) as e:
            logger.warning("[CONFIG] skipped because failed parse config index=%d err=%s", index, e)
            continue

    return Config(api_key=api_key, targets=tuple(targets))


def load_config(path: str | Path) -> Config:
    """Lee y valida el archivo de configuración.

    Raises:
        ConfigError: archivo ilegible, YAML inválido o falta de API key
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml in {path}: {e}") from e

    config = parse_config(raw)
    logger.info("[CONFIG] Loaded %s targets=%d", path, len(config.targets))
    return config
