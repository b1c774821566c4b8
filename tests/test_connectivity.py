# tests/test_connectivity.py
import pytest

from conftest import make
from circuitsim_core.data_structures import TerminalRef
from circuitsim_core.topology import ConnectivityCache


def degrees(component_id, *values):
    return {TerminalRef(component_id, ti): d for ti, d in enumerate(values)}


@pytest.fixture
def cache():
    return ConnectivityCache()


class TestConnectivityRules:

    def test_two_terminal_needs_both_ends(self, cache):
        resistor = make("Resistor", "R1", nodes=[1, 0])
        assert cache.is_connected(resistor, 1, degrees("R1", 1, 1))
        assert not cache.is_connected(resistor, 2, degrees("R1", 1, 0))

    def test_invalid_node_is_not_wired(self, cache):
        resistor = make("Resistor", "R1", nodes=[1, -1])
        assert not cache.is_connected(resistor, 1, degrees("R1", 1, 1))

    def test_ground_needs_its_one_terminal(self, cache):
        ground = make("Ground", "G1", nodes=[0])
        assert cache.is_connected(ground, 1, degrees("G1", 2))
        assert not cache.is_connected(ground, 2, degrees("G1", 0))

    @pytest.mark.parametrize("position, wired, expected", [
        ("a", (1, 1, 0), True),
        ("a", (1, 0, 1), False),
        ("b", (1, 0, 1), True),
        ("b", (0, 1, 1), False),
    ])
    def test_spdt_needs_common_and_selected_throw(self, cache, position, wired, expected):
        spdt = make("SPDTSwitch", "S1", nodes=[1, 2, 3], position=position)
        assert cache.is_connected(spdt, 1, degrees("S1", *wired)) is expected

    @pytest.mark.parametrize("wired, expected", [
        ((1, 1, 0, 0), True),
        ((0, 0, 1, 1), True),
        ((1, 0, 1, 0), False),
    ])
    def test_relay_needs_coil_or_contact(self, cache, wired, expected):
        relay = make("Relay", "K1", nodes=[1, 2, 3, 4])
        assert cache.is_connected(relay, 1, degrees("K1", *wired)) is expected


class TestMemoization:

    def test_hits_within_a_version(self, cache):
        resistor = make("Resistor", "R1", nodes=[1, 0])
        table = degrees("R1", 1, 1)
        assert cache.is_connected(resistor, 7, table)
        assert cache.is_connected(resistor, 7, degrees("R1", 0, 0))
        assert (cache.hits, cache.misses) == (1, 1)

    def test_new_version_recomputes(self, cache):
        resistor = make("Resistor", "R1", nodes=[1, 0])
        assert cache.is_connected(resistor, 1, degrees("R1", 1, 1))
        assert not cache.is_connected(resistor, 2, degrees("R1", 0, 1))
        assert cache.misses == 2

    def test_invalidate(self, cache):
        resistor = make("Resistor", "R1", nodes=[1, 0])
        cache.is_connected(resistor, 1, degrees("R1", 1, 1))
        cache.invalidate()
        assert not cache.is_connected(resistor, 1, degrees("R1", 0, 0))
