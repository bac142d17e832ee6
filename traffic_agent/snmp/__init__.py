"""Acceso SNMP (pysnmp) y registro de locks por conexión."""

from .locks import ConnectionLockRegistry
from .session import SnmpError, SnmpSession, SnmpSessionFactory

__all__ = [
    "ConnectionLockRegistry",
    "SnmpError",
    "SnmpSession",
    "SnmpSessionFactory",
]
