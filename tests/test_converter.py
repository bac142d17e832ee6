"""Tests de conversión contador acumulativo → métrica.

Ejecutar:
    pytest tests/test_converter.py -v
"""

import pytest

from traffic_agent.collector.models import RawSample
from traffic_agent.metrics import CustomCounterConverter, MetricDeltaConverter
from traffic_agent.metrics.converter import (
    MAX_UINT32,
    MAX_UINT64,
    convert,
    escape_interface_name,
    overflow_ceiling,
    wrap_diff,
)


NOW = 1_700_000_060.0
LAST = NOW - 60.0


def sample(counter: str, value: int, if_index: int = 1, if_name: str = "eth0") -> RawSample:
    return RawSample(if_index=if_index, counter=counter, if_name=if_name, value=value)


def as_pairs(metrics):
    return [(m.name, m.value) for m in metrics]


# =============================================================================
# WRAPAROUND
# =============================================================================

class TestWrapDiff:
    """Diferencia con desborde del contador."""

    @pytest.mark.parametrize("prev,curr,expected", [
        (1, 2, 1),
        (2, 2, 0),
        (3, 2, 3),
        (4, 2, 2),
        (5, 2, 1),
    ])
    def test_small_ceiling(self, prev, curr, expected):
        assert wrap_diff(prev, curr, 4) == expected

    def test_64bit_wrap(self):
        assert wrap_diff(MAX_UINT64, 60, MAX_UINT64) == 60

    def test_ceiling_by_counter(self):
        assert overflow_ceiling("ifInOctets") == MAX_UINT32
        assert overflow_ceiling("ifOutOctets") == MAX_UINT32
        assert overflow_ceiling("ifHCInOctets") == MAX_UINT64
        assert overflow_ceiling("ifInDiscards") == MAX_UINT64

    def test_32bit_counter_wraps_at_uint32(self):
        metrics = convert(
            [sample("ifInOctets", 59)],
            [sample("ifInOctets", MAX_UINT32 - 1)],
            NOW, LAST,
        )
        # (MAX - (MAX-1) + 59) / 60
        assert as_pairs(metrics) == [("interface.eth0.rxBytes.delta", 1)]


# =============================================================================
# CONVERSIÓN
# =============================================================================

class TestConvert:

    def test_escape_interface_name(self):
        assert escape_interface_name("a/1.hello hello") == "a-1_hellohello"

    def test_rates_and_raw_diffs(self):
        prev = [
            sample("ifHCInOctets", 1),
            sample("ifHCOutOctets", MAX_UINT64),
            sample("ifInDiscards", 0),
        ]
        curr = [
            sample("ifHCInOctets", 1),
            sample("ifHCOutOctets", 60),
            sample("ifInDiscards", 1),
        ]

        metrics = convert(curr, prev, NOW, LAST)

        assert as_pairs(metrics) == [
            ("interface.eth0.rxBytes.delta", 0),
            ("interface.eth0.txBytes.delta", 1),
            ("custom.interface.ifInDiscards.eth0", 1),
        ]
        assert all(m.time == int(NOW) for m in metrics)

    def test_rate_is_integer_division(self):
        metrics = convert([sample("ifHCInOctets", 60 + 119)], [sample("ifHCInOctets", 60)], NOW, LAST)
        assert as_pairs(metrics) == [("interface.eth0.rxBytes.delta", 1)]

    def test_missing_baseline_is_skipped(self):
        metrics = convert(
            [sample("ifHCInOctets", 60), sample("ifHCInOctets", 60, if_index=2, if_name="eth1")],
            [sample("ifHCInOctets", 0)],
            NOW, LAST,
        )
        assert as_pairs(metrics) == [("interface.eth0.rxBytes.delta", 1)]

    def test_zero_elapsed_skips_rates_only(self):
        metrics = convert(
            [sample("ifHCInOctets", 10), sample("ifInErrors", 3)],
            [sample("ifHCInOctets", 0), sample("ifInErrors", 1)],
            NOW, NOW - 0.5,
        )
        assert as_pairs(metrics) == [("custom.interface.ifInErrors.eth0", 2)]


class TestMetricDeltaConverter:
    """Conversor con estado entre ciclos."""

    def test_first_call_only_sets_baseline(self):
        converter = MetricDeltaConverter()
        assert converter.has_baseline is False

        assert converter.convert([sample("ifHCInOctets", 0)], now=LAST) == []
        assert converter.has_baseline is True

    def test_scenario_over_cycles(self):
        converter = MetricDeltaConverter()
        t0 = 1_700_000_000.0
        steps = [
            ([sample("ifHCInOctets", 0)], []),
            ([sample("ifHCInOctets", 60), sample("ifHCOutOctets", 60)],
             [("interface.eth0.rxBytes.delta", 1)]),
            ([sample("ifHCInOctets", 120), sample("ifHCOutOctets", 120)],
             [("interface.eth0.rxBytes.delta", 1), ("interface.eth0.txBytes.delta", 1)]),
            ([sample("ifHCInOctets", 180), sample("ifHCOutOctets", 180)],
             [("interface.eth0.rxBytes.delta", 1), ("interface.eth0.txBytes.delta", 1)]),
            ([sample("ifHCOutOctets", 240)],
             [("interface.eth0.txBytes.delta", 1)]),
        ]

        for i, (current, expected) in enumerate(steps):
            metrics = converter.convert(current, now=t0 + 60 * i)
            assert as_pairs(metrics) == expected, f"step {i}"

    def test_baseline_replaced_even_when_empty(self):
        converter = MetricDeltaConverter()
        converter.convert([sample("ifHCInOctets", 0)], now=LAST)
        converter.convert([], now=NOW)

        # Sin línea base otra vez → sólo se fija
        assert converter.convert([sample("ifHCInOctets", 60)], now=NOW + 60) == []
        assert as_pairs(converter.convert([sample("ifHCInOctets", 120)], now=NOW + 120)) == [
            ("interface.eth0.rxBytes.delta", 1),
        ]


class TestCustomCounterConverter:

    def test_maps_values_by_oid(self):
        converter = CustomCounterConverter([("custom.a.cpu", "1.2.3"), ("custom.a.mem", "1.2.4")])

        metrics = converter.convert({"1.2.3": 42.0}, now=NOW)

        assert len(metrics) == 1
        assert metrics[0].name == "custom.a.cpu"
        assert metrics[0].value == 42.0
        assert metrics[0].time == int(NOW)
