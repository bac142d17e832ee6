"""Tests del registro de locks por conexión."""

import threading

from traffic_agent.config.models import SnmpTarget, SnmpV2cCredentials
from traffic_agent.snmp import ConnectionLockRegistry


class TestConnectionLockRegistry:

    def test_same_key_same_lock(self):
        registry = ConnectionLockRegistry()

        assert registry.get("192.0.2.1:161") is registry.get("192.0.2.1:161")
        assert registry.get("192.0.2.1:161") is not registry.get("192.0.2.1:1161")
        assert len(registry) == 2

    def test_hold_excludes_other_threads(self):
        registry = ConnectionLockRegistry()
        entered = threading.Event()

        def other():
            with registry.hold("k"):
                entered.set()

        with registry.hold("k"):
            t = threading.Thread(target=other)
            t.start()
            assert not entered.wait(timeout=0.1)

        assert entered.wait(timeout=1)
        t.join(timeout=1)

    def test_connection_key(self):
        creds = SnmpV2cCredentials(community="public")
        assert SnmpTarget("192.0.2.1", 161, creds).connection_key == "192.0.2.1:161"
        assert SnmpTarget("2001:db8::1", 161, creds).connection_key == "[2001:db8::1]:161"
