"""Collector: obtiene contadores, valores custom e inventario de un target.

Las funciones ``collect_*`` trabajan sobre una sesión ya abierta (cualquier
objeto con la interfaz de ``SnmpSession``), lo que permite probarlas sin red.
``Collector`` abre una sesión por operación, serializada por host:port.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..config.counters import COUNTER_OIDS
from ..config.models import TargetConfig
from ..snmp.session import SnmpSessionFactory
from .models import InterfaceInfo, RawSample

logger = logging.getLogger(__name__)


def _interface_selected(conf: TargetConfig, if_name: str) -> bool:
    if conf.include_pattern is not None and not conf.include_pattern.search(if_name):
        return False
    if conf.exclude_pattern is not None and conf.exclude_pattern.search(if_name):
        return False
    return True


def collect_samples(client, conf: TargetConfig) -> List[RawSample]:
    """Lee los contadores configurados de todas las interfaces seleccionadas."""
    client.get_interface_number()
    if_names = client.walk_interface_names()

    if_up: Optional[Dict[int, bool]] = None
    if conf.skip_down_interfaces:
        if_up = client.walk_interface_state()

    samples: List[RawSample] = []
    for counter in conf.counters:
        values = client.walk_counter(COUNTER_OIDS[counter])
        for if_index in sorted(values):
            if_name = if_names.get(if_index, "")
            if not _interface_selected(conf, if_name):
                continue
            # down(2) o sin estado conocido → se omite
            if if_up is not None and not if_up.get(if_index, False):
                continue
            samples.append(RawSample(
                if_index=if_index,
                counter=counter,
                if_name=if_name,
                value=values[if_index],
            ))
    return samples


def collect_interface_inventory(client) -> List[InterfaceInfo]:
    """Interfaces con IP asignada, ordenadas por ifIndex."""
    client.get_interface_number()
    if_names = client.walk_interface_names()
    ip_addresses = client.walk_interface_ip_addresses()
    mac_addresses = client.walk_interface_phys_addresses()

    interfaces: List[InterfaceInfo] = []
    for if_index in sorted(ip_addresses):
        name = if_names.get(if_index)
        if name is None:
            continue
        interfaces.append(InterfaceInfo(
            if_name=name,
            ip_addresses=tuple(ip_addresses[if_index]),
            mac_address=mac_addresses.get(if_index, ""),
        ))
    return interfaces


def collect_custom_values(client, conf: TargetConfig) -> Dict[str, float]:
    """GET de los OIDs custom → {oid: valor}."""
    values = client.get_values(list(conf.custom_oids))
    return dict(zip(conf.custom_oids, values))


class Collector:
    """Capacidad de polling de un target concreto."""

    def __init__(self, conf: TargetConfig, sessions: Optional[SnmpSessionFactory] = None):
        self.conf = conf
        self._sessions = sessions or SnmpSessionFactory()

    def collect(self) -> List[RawSample]:
        with self._sessions.session(self.conf.snmp) as client:
            return collect_samples(client, self.conf)

    def collect_custom_counters(self) -> Dict[str, float]:
        if not self.conf.custom_oids:
            return {}
        with self._sessions.session(self.conf.snmp) as client:
            return collect_custom_values(client, self.conf)

    def collect_interface_inventory(self) -> List[InterfaceInfo]:
        with self._sessions.session(self.conf.snmp) as client:
            return collect_interface_inventory(client)
