"""Sesión SNMP síncrona sobre pysnmp (asyncio).

Cada sesión usa su propio event loop, así puede abrirse desde cualquier
thread de worker sin compartir estado con otros targets. Las sesiones
contra el mismo host:port se serializan con ``ConnectionLockRegistry``.
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from pysnmp.hlapi.v3arch.asyncio import (
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    Udp6TransportTarget,
    UdpTransportTarget,
    UsmUserData,
    bulk_walk_cmd,
    get_cmd,
    usmAesCfb128Protocol,
    usmAesCfb192Protocol,
    usmAesCfb256Protocol,
    usmDESPrivProtocol,
    usmHMAC128SHA224AuthProtocol,
    usmHMAC192SHA256AuthProtocol,
    usmHMAC256SHA384AuthProtocol,
    usmHMAC384SHA512AuthProtocol,
    usmHMACMD5AuthProtocol,
    usmHMACSHAAuthProtocol,
    usmNoAuthProtocol,
    usmNoPrivProtocol,
)
from pysnmp.proto.rfc1902 import OctetString
from pysnmp.proto.rfc1905 import EndOfMibView, NoSuchInstance, NoSuchObject

from ..config.models import (
    SEC_LEVEL_AUTH,
    SEC_LEVEL_PRIV,
    SnmpTarget,
    SnmpV2cCredentials,
    SnmpV3Credentials,
)
from .locks import ConnectionLockRegistry

logger = logging.getLogger(__name__)

OID_IF_NUMBER = "1.3.6.1.2.1.2.1.0"
OID_IF_DESCR = "1.3.6.1.2.1.2.2.1.2"
OID_IF_PHYS_ADDRESS = "1.3.6.1.2.1.2.2.1.6"
OID_IF_OPER_STATUS = "1.3.6.1.2.1.2.2.1.8"
OID_IP_AD_ENT_IF_INDEX = "1.3.6.1.2.1.4.20.1.2"

# ifOperStatus: up(1) down(2) testing(3) ...
IF_OPER_STATUS_DOWN = 2

AUTH_PROTOCOL_MAP = {
    "noauth": usmNoAuthProtocol,
    "md5": usmHMACMD5AuthProtocol,
    "sha": usmHMACSHAAuthProtocol,
    "sha224": usmHMAC128SHA224AuthProtocol,
    "sha256": usmHMAC192SHA256AuthProtocol,
    "sha384": usmHMAC256SHA384AuthProtocol,
    "sha512": usmHMAC384SHA512AuthProtocol,
}

PRIV_PROTOCOL_MAP = {
    "nopriv": usmNoPrivProtocol,
    "des": usmDESPrivProtocol,
    "aes": usmAesCfb128Protocol,
    "aes192": usmAesCfb192Protocol,
    "aes256": usmAesCfb256Protocol,
}

_MISSING_VALUE_TYPES = (NoSuchObject, NoSuchInstance, EndOfMibView)


class SnmpError(Exception):
    """Fallo de una operación SNMP (timeout, error de agente, tipo inesperado)."""


def build_auth_data(credentials):
    """Credenciales de config → objeto de autenticación de pysnmp."""
    if isinstance(credentials, SnmpV2cCredentials):
        # mpModel=1 → SNMPv2c
        return CommunityData(credentials.community, mpModel=1)

    if isinstance(credentials, SnmpV3Credentials):
        kwargs: Dict[str, Any] = {}
        if credentials.security_level in (SEC_LEVEL_AUTH, SEC_LEVEL_PRIV):
            kwargs["authKey"] = credentials.auth_passphrase
            kwargs["authProtocol"] = AUTH_PROTOCOL_MAP[credentials.auth_protocol]
        if credentials.security_level == SEC_LEVEL_PRIV:
            kwargs["privKey"] = credentials.privacy_passphrase
            kwargs["privProtocol"] = PRIV_PROTOCOL_MAP[credentials.privacy_protocol]
        return UsmUserData(credentials.username, **kwargs)

    raise SnmpError(f"invalid credentials: {type(credentials).__name__}")


def _oid_str(name) -> str:
    if hasattr(name, "getOid"):
        name = name.getOid()
    return str(name)


def capture_if_index(oid: str) -> int:
    """Último sub-identificador de un OID de tabla = ifIndex."""
    try:
        return int(oid.rsplit(".", 1)[-1])
    except ValueError as e:
        raise SnmpError(f"cant parse ifIndex from {oid}") from e


def _is_octet_string(value) -> bool:
    return isinstance(value, OctetString)


def _as_uint(value, oid: str) -> int:
    if _is_octet_string(value) or isinstance(value, _MISSING_VALUE_TYPES):
        raise SnmpError(f"cant parse value of {oid}")
    return int(value)


class SnmpSession:
    """Sesión contra un agente SNMP.

    No es thread-safe: la usa un único thread entre ``open()`` y ``close()``.
    """

    def __init__(
        self,
        target: SnmpTarget,
        timeout: float = 10.0,
        retries: int = 3,
        max_repetitions: int = 25,
    ):
        self.target = target
        self._timeout = timeout
        self._retries = retries
        self._max_repetitions = max_repetitions

        self._loop = asyncio.new_event_loop()
        self._engine: Optional[SnmpEngine] = None
        self._transport = None
        self._auth = build_auth_data(target.credentials)

    # ------------------------------------------------------------------
    # ciclo de vida
    # ------------------------------------------------------------------

    def open(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._engine = SnmpEngine()
        self._transport = self._run(self._create_transport())

    def close(self) -> None:
        try:
            if self._engine is not None:
                self._engine.close_dispatcher()
        except Exception as e:
            logger.debug("[SNMP] close dispatcher %s: %s", self.target.connection_key, e)
        finally:
            self._loop.close()
            asyncio.set_event_loop(None)

    def __enter__(self) -> "SnmpSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    async def _create_transport(self):
        address = (self.target.host, self.target.port)
        transport_cls = UdpTransportTarget
        try:
            if ipaddress.ip_address(self.target.host).version == 6:
                transport_cls = Udp6TransportTarget
        except ValueError:
            pass  # hostname
        return await transport_cls.create(address, timeout=self._timeout, retries=self._retries)

    def _run(self, coro):
        try:
            return self._loop.run_until_complete(coro)
        except SnmpError:
            raise
        except Exception as e:
            raise SnmpError(f"{self.target.connection_key}: {e}") from e

    # ------------------------------------------------------------------
    # primitivas
    # ------------------------------------------------------------------

    async def _get(self, oids: List[str]) -> list:
        error_indication, error_status, error_index, var_binds = await get_cmd(
            self._engine,
            self._auth,
            self._transport,
            ContextData(),
            *[ObjectType(ObjectIdentity(oid)) for oid in oids],
            lookupMib=False,
        )
        if error_indication:
            raise SnmpError(str(error_indication))
        if error_status:
            raise SnmpError(f"{error_status.prettyPrint()} at {error_index}")
        return [(_oid_str(name), value) for name, value in var_binds]

    async def _walk(self, root_oid: str) -> list:
        rows = []
        async for error_indication, error_status, error_index, var_binds in bulk_walk_cmd(
            self._engine,
            self._auth,
            self._transport,
            ContextData(),
            0,
            self._max_repetitions,
            ObjectType(ObjectIdentity(root_oid)),
            lexicographicMode=False,
            lookupMib=False,
        ):
            if error_indication:
                raise SnmpError(str(error_indication))
            if error_status:
                raise SnmpError(f"{error_status.prettyPrint()} at {error_index}")
            for name, value in var_binds:
                if isinstance(value, _MISSING_VALUE_TYPES):
                    continue
                rows.append((_oid_str(name), value))
        return rows

    def get(self, oids: List[str]) -> list:
        return self._run(self._get(oids))

    def walk(self, root_oid: str) -> list:
        return self._run(self._walk(root_oid))

    # ------------------------------------------------------------------
    # consultas de alto nivel (usadas por Collector)
    # ------------------------------------------------------------------

    def get_interface_number(self) -> int:
        (oid, value), = self.get([OID_IF_NUMBER])
        if _is_octet_string(value) or isinstance(value, _MISSING_VALUE_TYPES):
            raise SnmpError("cant get interface number")
        return int(value)

    def walk_interface_names(self) -> Dict[int, str]:
        names: Dict[int, str] = {}
        for oid, value in self.walk(OID_IF_DESCR):
            if not _is_octet_string(value):
                raise SnmpError("cant parse interface name")
            names[capture_if_index(oid)] = value.asOctets().decode("utf-8", errors="replace")
        return names

    def walk_interface_state(self) -> Dict[int, bool]:
        """ifIndex → True salvo que el enlace esté down(2)."""
        states: Dict[int, bool] = {}
        for oid, value in self.walk(OID_IF_OPER_STATUS):
            states[capture_if_index(oid)] = _as_uint(value, oid) != IF_OPER_STATUS_DOWN
        return states

    def walk_counter(self, oid: str) -> Dict[int, int]:
        values: Dict[int, int] = {}
        for name, value in self.walk(oid):
            values[capture_if_index(name)] = _as_uint(value, name)
        return values

    def walk_interface_ip_addresses(self) -> Dict[int, List[str]]:
        addresses: Dict[int, List[str]] = {}
        prefix = OID_IP_AD_ENT_IF_INDEX + "."
        for oid, value in self.walk(OID_IP_AD_ENT_IF_INDEX):
            address = oid[len(prefix):] if oid.startswith(prefix) else oid
            try:
                ip = ipaddress.ip_address(address)
            except ValueError:
                continue
            if ip.is_loopback:
                continue
            if_index = _as_uint(value, oid)
            addresses.setdefault(if_index, []).append(address)
        return addresses

    def walk_interface_phys_addresses(self) -> Dict[int, str]:
        macs: Dict[int, str] = {}
        for oid, value in self.walk(OID_IF_PHYS_ADDRESS):
            if not _is_octet_string(value):
                raise SnmpError("cant parse phy address")
            macs[capture_if_index(oid)] = ":".join(f"{b:02x}" for b in value.asOctets())
        return macs

    def get_values(self, oids: List[str]) -> List[float]:
        values: List[float] = []
        for oid, value in self.get(oids):
            if isinstance(value, _MISSING_VALUE_TYPES):
                raise SnmpError(f"no such object: {oid}")
            if _is_octet_string(value):
                raw = value.asOctets().decode("utf-8", errors="replace")
                try:
                    values.append(float(raw))
                except ValueError as e:
                    raise SnmpError(f"value cant parse : {raw!r}") from e
            else:
                values.append(float(int(value)))
        return values


class SnmpSessionFactory:
    """Abre sesiones SNMP serializadas por host:port."""

    def __init__(
        self,
        locks: Optional[ConnectionLockRegistry] = None,
        timeout: float = 10.0,
        retries: int = 3,
    ):
        self.locks = locks or ConnectionLockRegistry()
        self.timeout = timeout
        self.retries = retries

    @contextmanager
    def session(self, target: SnmpTarget) -> Iterator[SnmpSession]:
        with self.locks.hold(target.connection_key):
            s = SnmpSession(target, timeout=self.timeout, retries=self.retries)
            try:
                s.open()
                yield s
            finally:
                s.close()
