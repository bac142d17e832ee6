"""Tests del Collector con una sesión SNMP falsa."""

import re
from unittest.mock import MagicMock

import pytest

from traffic_agent.collector import (
    Collector,
    InterfaceInfo,
    RawSample,
    collect_custom_values,
    collect_interface_inventory,
    collect_samples,
)
from traffic_agent.config.counters import COUNTER_OIDS


class FakeSession:
    def __init__(self):
        self.names = {1: "ge-0/0/1", 2: "ge-0/0/2", 3: "lo0"}
        self.states = {1: True, 2: False}
        self.counters = {
            COUNTER_OIDS["ifHCInOctets"]: {3: 30, 1: 10, 2: 20},
            COUNTER_OIDS["ifHCOutOctets"]: {1: 11, 2: 21, 3: 31},
        }

    def get_interface_number(self):
        return len(self.names)

    def walk_interface_names(self):
        return dict(self.names)

    def walk_interface_state(self):
        return dict(self.states)

    def walk_counter(self, oid):
        return dict(self.counters[oid])

    def walk_interface_ip_addresses(self):
        return {2: ["192.0.2.2"], 1: ["192.0.2.1", "198.51.100.1"], 9: ["203.0.113.9"]}

    def walk_interface_phys_addresses(self):
        return {1: "00:11:22:33:44:55"}

    def get_values(self, oids):
        return [float(i) for i, _ in enumerate(oids, start=1)]


@pytest.fixture
def session():
    return FakeSession()


class TestCollectSamples:

    def test_all_interfaces_sorted(self, session, target):
        samples = collect_samples(session, target)

        assert [(s.counter, s.if_index) for s in samples] == [
            ("ifHCInOctets", 1), ("ifHCInOctets", 2), ("ifHCInOctets", 3),
            ("ifHCOutOctets", 1), ("ifHCOutOctets", 2), ("ifHCOutOctets", 3),
        ]
        assert samples[0] == RawSample(if_index=1, counter="ifHCInOctets", if_name="ge-0/0/1", value=10)

    def test_include_filter(self, session, make_target):
        conf = make_target(include_pattern=re.compile("^ge-"))
        names = {s.if_name for s in collect_samples(session, conf)}
        assert names == {"ge-0/0/1", "ge-0/0/2"}

    def test_exclude_filter(self, session, make_target):
        conf = make_target(exclude_pattern=re.compile("^lo"))
        names = {s.if_name for s in collect_samples(session, conf)}
        assert "lo0" not in names

    def test_skip_down_and_unknown_state(self, session, make_target):
        conf = make_target(skip_down_interfaces=True)
        indexes = {s.if_index for s in collect_samples(session, conf)}
        # 2 está down, 3 no tiene estado conocido
        assert indexes == {1}


class TestInventory:

    def test_only_interfaces_with_names(self, session):
        interfaces = collect_interface_inventory(session)

        assert interfaces == [
            InterfaceInfo(if_name="ge-0/0/1", ip_addresses=("192.0.2.1", "198.51.100.1"), mac_address="00:11:22:33:44:55"),
            InterfaceInfo(if_name="ge-0/0/2", ip_addresses=("192.0.2.2",), mac_address=""),
        ]


class TestCustomValues:

    def test_maps_by_oid(self, session, custom_target):
        assert collect_custom_values(session, custom_target) == {"1.3.6.1.4.1.9.9.13.1.3.1.3.1": 1.0}

    def test_collector_skips_session_without_custom_oids(self, target):
        sessions = MagicMock()
        collector = Collector(target, sessions)

        assert collector.collect_custom_counters() == {}
        sessions.session.assert_not_called()

    def test_collector_uses_session_factory(self, session, target):
        sessions = MagicMock()
        sessions.session.return_value.__enter__.return_value = session
        collector = Collector(target, sessions)

        samples = collector.collect()

        sessions.session.assert_called_once_with(target.snmp)
        assert len(samples) == 6
