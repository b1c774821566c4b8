# tests/test_wire_compactor.py
from conftest import FixedResolver, make
from circuitsim_core.data_structures import Point, TerminalRef, Wire
from circuitsim_core.topology import compact_wires


def wires_of(*specs):
    wires = {}
    for wire_id, a, b in specs:
        wires[wire_id] = Wire(wire_id, Point(*a), Point(*b))
    return wires


class TestMerging:

    def test_collinear_pair_merges(self):
        wires = wires_of(("w1", (0, 0), (50, 0)), ("w2", (50, 0), (100, 0)))
        result = compact_wires(wires)
        assert result.changed
        assert list(wires) == ["w1"]
        assert (wires["w1"].a, wires["w1"].b) == (Point(0, 0), Point(100, 0))
        assert result.removed_ids == ["w2"]
        assert result.replacement_by_removed_id == {"w2": "w1"}

    def test_chain_of_three(self):
        wires = wires_of(
            ("w1", (0, 0), (0, 40)),
            ("w2", (0, 40), (0, 80)),
            ("w3", (0, 80), (0, 120)),
        )
        result = compact_wires(wires)
        assert list(wires) == ["w1"]
        assert {wires["w1"].a, wires["w1"].b} == {Point(0, 0), Point(0, 120)}
        assert result.replacement_by_removed_id == {"w2": "w1", "w3": "w1"}

    def test_perpendicular_corner_is_kept(self):
        wires = wires_of(("w1", (0, 0), (50, 0)), ("w2", (50, 0), (50, 50)))
        result = compact_wires(wires)
        assert not result.changed
        assert len(wires) == 2

    def test_fold_back_is_kept(self):
        wires = wires_of(("w1", (0, 0), (50, 0)), ("w2", (50, 0), (20, 0)))
        assert not compact_wires(wires).changed

    def test_three_way_junction_is_kept(self):
        wires = wires_of(
            ("w1", (0, 0), (50, 0)),
            ("w2", (50, 0), (100, 0)),
            ("w3", (50, 0), (50, 50)),
        )
        assert not compact_wires(wires).changed

    def test_parallel_wires_between_same_points(self):
        wires = wires_of(("w1", (0, 0), (100, 0)), ("w2", (100, 0), (0, 0)))
        result = compact_wires(wires)
        assert list(wires) == ["w1"]
        assert result.replacement_by_removed_id == {"w2": "w1"}


class TestProtectedPoints:

    def test_never_merges_through_a_terminal(self):
        resistor = make("Resistor", "R1")
        resolver = FixedResolver({("R1", 0): (50, 0), ("R1", 1): (50, 60)})
        wires = wires_of(("w1", (0, 0), (50, 0)), ("w2", (50, 0), (100, 0)))
        assert not compact_wires(wires, [resistor], resolver).changed
        assert len(wires) == 2

    def test_default_geometry_protects_terminals(self):
        # R1 at the origin has its terminals at (-30, 0) and (30, 0).
        resistor = make("Resistor", "R1", x=0, y=0)
        wires = wires_of(("w1", (-80, 0), (-30, 0)), ("w2", (-30, 0), (-30, 0)), ("w3", (-30, 0), (20, 0)))
        result = compact_wires(wires, [resistor])
        assert result.removed_ids == ["w2"]
        assert sorted(wires) == ["w1", "w3"]

    def test_bound_endpoint_is_kept(self):
        wires = wires_of(("w1", (0, 0), (50, 0)), ("w2", (50, 0), (100, 0)))
        wires["w1"].b_ref = TerminalRef("R1", 0)
        assert not compact_wires(wires).changed

    def test_far_end_binding_survives_merge(self):
        wires = wires_of(("w1", (0, 0), (50, 0)), ("w2", (50, 0), (100, 0)))
        wires["w2"].b_ref = TerminalRef("R1", 1)
        compact_wires(wires)
        assert wires["w1"].b == Point(100, 0)
        assert wires["w1"].b_ref == TerminalRef("R1", 1)


class TestHousekeeping:

    def test_zero_length_wire_removed(self):
        wires = wires_of(("w0", (10, 10), (10, 10)), ("w1", (0, 0), (0, 50)))
        result = compact_wires(wires)
        assert result.changed
        assert result.removed_ids == ["w0"]
        assert result.replacement_by_removed_id == {}
        assert list(wires) == ["w1"]

    def test_endpoints_quantized(self):
        wires = {"w1": Wire("w1", (0.4, 0.0), (10.0, 0.0)), "w2": Wire("w2", (10.2, 0.0), (20.0, 0.0))}
        compact_wires(wires)
        assert list(wires) == ["w1"]
        assert wires["w1"].a == Point(0, 0)
        assert wires["w1"].b == Point(20, 0)

    def test_scope_limits_merges(self):
        wires = wires_of(
            ("w1", (0, 0), (50, 0)),
            ("w2", (50, 0), (100, 0)),
            ("w3", (0, 200), (50, 200)),
            ("w4", (50, 200), (100, 200)),
        )
        result = compact_wires(wires, scope_wire_ids=["w3"])
        assert sorted(wires) == ["w1", "w2", "w3"]
        assert result.replacement_by_removed_id == {"w4": "w3"}
        assert (wires["w3"].a, wires["w3"].b) == (Point(0, 200), Point(100, 200))
