"""Cliente HTTP mínimo para la API de Mackerel.

Endpoints usados:
- POST /api/v0/tsdb                  → métricas de host
- PUT  /api/v0/hosts/<hostId>        → metadata (nombre + interfaces)
- POST /api/v0/graph-defs/create     → definiciones de gráficos

Cualquier respuesta no-2xx se traduce en ``MackerelAPIError``; los
llamadores (SendQueue, MetadataTicker, Supervisor) deciden si reintentar
o sólo loguear.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence
from urllib.parse import urljoin

import requests

from ..collector.models import InterfaceInfo
from ..config.counters import COUNTER_OIDS
from ..config.models import GraphDef, GraphDefMetric
from ..metrics.converter import is_rate_counter
from ..metrics.models import Metric

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.mackerelio.com/"


class MackerelAPIError(Exception):
    """La API respondió con un status no exitoso."""

    def __init__(self, status: int, body: str):
        super().__init__(f"mackerel api error: status={status} body={body}")
        self.status = status
        self.body = body


def interface_graph_defs() -> List[GraphDef]:
    """Gráficos para los contadores de interfaz que se envían como diferencia."""
    defs: List[GraphDef] = []
    for counter in sorted(COUNTER_OIDS):
        if is_rate_counter(counter):
            continue
        name = f"custom.interface.{counter}"
        defs.append(GraphDef(
            name=name,
            display_name=counter,
            unit="integer",
            metrics=(GraphDefMetric(name=f"{name}.*", display_name="%1"),),
        ))
    return defs


def host_interfaces_payload(host_addr: str, interfaces: Sequence[InterfaceInfo]) -> List[dict]:
    if not interfaces:
        # Sin inventario: una interfaz sintética con la dirección del target.
        return [{"name": "main", "ipv4Addresses": [host_addr]}]

    payload = []
    for iface in interfaces:
        item = {"name": iface.if_name, "ipv4Addresses": list(iface.ip_addresses)}
        if iface.mac_address:
            item["macAddress"] = iface.mac_address
        payload.append(item)
    return payload


class MackerelClient:
    """Implementa los protocolos Sender y MetadataUpdater sobre ``requests``."""

    def __init__(
        self,
        api_key: str,
        api_base: str = DEFAULT_API_BASE,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self._api_base = api_base if api_base.endswith("/") else api_base + "/"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "X-Api-Key": api_key,
            "Content-Type": "application/json",
            "User-Agent": "traffic-agent",
        })

    @classmethod
    def from_settings(cls, settings, api_key: Optional[str] = None) -> "MackerelClient":
        return cls(
            api_key=api_key or settings.mackerel_api_key,
            api_base=settings.mackerel_api_base or DEFAULT_API_BASE,
            timeout=settings.http_timeout,
        )

    def _request(self, method: str, path: str, payload) -> dict:
        url = urljoin(self._api_base, path)
        response = self._session.request(method, url, json=payload, timeout=self._timeout)
        if not response.ok:
            raise MackerelAPIError(response.status_code, response.text)
        if not response.content:
            return {}
        return response.json()

    def send(self, host_id: str, metrics: Sequence[Metric]) -> None:
        payload = [m.to_payload(host_id) for m in metrics]
        self._request("POST", "api/v0/tsdb", payload)
        logger.debug("[MACKEREL] posted host=%s metrics=%d", host_id, len(payload))

    def update_host(
        self,
        host_id: str,
        host_addr: str,
        hostname: str,
        interfaces: Sequence[InterfaceInfo],
    ) -> None:
        payload = {
            "name": hostname,
            "interfaces": host_interfaces_payload(host_addr, interfaces),
        }
        self._request("PUT", f"api/v0/hosts/{host_id}", payload)
        logger.info(
            "[MACKEREL] updated host=%s name=%s interfaces=%d",
            host_id, hostname, len(payload["interfaces"]),
        )

        self.create_graph_defs(interface_graph_defs())

    def create_graph_defs(self, graph_defs: Sequence[GraphDef]) -> None:
        if not graph_defs:
            return
        payload = [g.to_payload() for g in graph_defs]
        self._request("POST", "api/v0/graph-defs/create", payload)
        logger.debug("[MACKEREL] created graph defs=%d", len(payload))

    def close(self) -> None:
        self._session.close()
