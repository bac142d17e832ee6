"""Fixtures compartidas."""

from typing import Callable

import pytest

from traffic_agent.config.counters import validate_counters
from traffic_agent.config.models import (
    GraphDef,
    GraphDefMetric,
    SnmpTarget,
    SnmpV2cCredentials,
    TargetConfig,
)


def build_target(
    host: str = "192.0.2.1",
    host_id: str = "host-a",
    port: int = 161,
    **kwargs,
) -> TargetConfig:
    kwargs.setdefault("counters", validate_counters(["ifHCInOctets", "ifHCOutOctets"]))
    return TargetConfig(
        host_id=host_id,
        snmp=SnmpTarget(host=host, port=port, credentials=SnmpV2cCredentials(community="public")),
        **kwargs,
    )


@pytest.fixture
def make_target() -> Callable[..., TargetConfig]:
    """Fábrica de TargetConfig v2c."""
    return build_target


@pytest.fixture
def target() -> TargetConfig:
    return build_target()


@pytest.fixture
def custom_target() -> TargetConfig:
    """Target con un grupo de contadores custom."""
    graph = GraphDef(
        name="custom.custommibs.abc",
        display_name="Temperature",
        unit="integer",
        metrics=(GraphDefMetric(name="custom.custommibs.abc.cpu", display_name="cpu"),),
    )
    return build_target(
        custom_oids=("1.3.6.1.4.1.9.9.13.1.3.1.3.1",),
        custom_metric_oids=(("custom.custommibs.abc.cpu", "1.3.6.1.4.1.9.9.13.1.3.1.3.1"),),
        custom_graph_defs=(graph,),
    )
