"""Tabla de contadores IF-MIB soportados.

Los nombres son los que se aceptan en la clave ``mibs`` del YAML.
"""

from __future__ import annotations

import re
from typing import Iterable

from .errors import TargetConfigError

# ifTable (32-bit) / ifXTable (64-bit)
COUNTER_OIDS: dict[str, str] = {
    "ifInOctets": "1.3.6.1.2.1.2.2.1.10",
    "ifOutOctets": "1.3.6.1.2.1.2.2.1.16",
    "ifHCInOctets": "1.3.6.1.2.1.31.1.1.1.6",
    "ifHCOutOctets": "1.3.6.1.2.1.31.1.1.1.10",
    "ifInDiscards": "1.3.6.1.2.1.2.2.1.13",
    "ifOutDiscards": "1.3.6.1.2.1.2.2.1.19",
    "ifInErrors": "1.3.6.1.2.1.2.2.1.14",
    "ifOutErrors": "1.3.6.1.2.1.2.2.1.20",
    "ifInUcastPkts": "1.3.6.1.2.1.2.2.1.11",
    "ifOutUcastPkts": "1.3.6.1.2.1.2.2.1.17",
    "ifInNUcastPkts": "1.3.6.1.2.1.2.2.1.12",
    "ifOutNUcastPkts": "1.3.6.1.2.1.2.2.1.18",
    "ifHCInUcastPkts": "1.3.6.1.2.1.31.1.1.1.7",
    "ifHCOutUcastPkts": "1.3.6.1.2.1.31.1.1.1.11",
    "ifHCInMulticastPkts": "1.3.6.1.2.1.31.1.1.1.8",
    "ifHCOutMulticastPkts": "1.3.6.1.2.1.31.1.1.1.12",
    "ifHCInBroadcastPkts": "1.3.6.1.2.1.31.1.1.1.9",
    "ifHCOutBroadcastPkts": "1.3.6.1.2.1.31.1.1.1.13",
}

_OID_RE = re.compile(r"^\.?\d+(\.\d+)+$")


def validate_counters(names: Iterable[str] | None) -> tuple[str, ...]:
    """Valida los contadores pedidos y los devuelve ordenados.

    Lista vacía = todos los contadores conocidos. El orden estable evita
    diferencias espurias entre recargas de configuración.
    """
    names = list(names or [])
    if not names:
        return tuple(sorted(COUNTER_OIDS))

    unknown = [n for n in names if n not in COUNTER_OIDS]
    if unknown:
        raise TargetConfigError(f"unknown mib: {', '.join(unknown)}")
    return tuple(sorted(set(names)))


def validate_custom_oid(oid: str) -> str:
    """Valida un OID numérico de un contador personalizado."""
    if not oid or not _OID_RE.match(oid):
        raise TargetConfigError(f"invalid custom mib oid: {oid!r}")
    return oid.lstrip(".")
