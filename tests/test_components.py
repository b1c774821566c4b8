# tests/test_components.py
import math

import pytest

from circuitsim_core.components import (
    COMPONENT_REGISTRY,
    NONLINEAR_KINDS,
    ComponentBase,
    ComponentError,
    ComponentKind,
    IConnectivityProvider,
    IDynamicContributor,
    IMnaContributor,
    INonlinearContributor,
    ParameterSpec,
    RheostatConnectionMode,
    create_component,
    register_component,
    rheostat_connection_mode,
)


class TestRegistry:

    def test_every_kind_is_registered(self):
        assert set(COMPONENT_REGISTRY) == set(ComponentKind)
        assert len(COMPONENT_REGISTRY) == 20

    @pytest.mark.parametrize("kind", list(ComponentKind))
    def test_create_by_tag(self, kind):
        comp = create_component(kind.value, "X1")
        assert comp.kind is kind
        assert comp.type_str == kind.value
        assert comp.nodes == [-1] * comp.terminal_count()
        assert comp.get_capability(IMnaContributor) is not None
        assert comp.get_capability(IConnectivityProvider) is not None

    def test_unknown_type(self):
        with pytest.raises(ComponentError) as exc_info:
            create_component("Transistor", "Q1")
        assert "Unknown component type 'Transistor'" in str(exc_info.value)
        assert "Component Configuration Error" in exc_info.value.get_diagnostic_report()

    def test_contract_violations_are_rejected(self):
        class NoTerminals(ComponentBase):
            @classmethod
            def declare_terminals(cls):
                return []

            @classmethod
            def declare_parameters(cls):
                return {}

        with pytest.raises(TypeError):
            register_component(ComponentKind.RESISTOR)(NoTerminals)
        assert COMPONENT_REGISTRY[ComponentKind.RESISTOR].__name__ == "Resistor"

    def test_terminal_names(self):
        assert create_component("Relay", "K1").declare_terminals() == ['coil_a', 'coil_b', 'contact_a', 'contact_b']
        assert create_component("Rheostat", "P1").terminal_count() == 3
        assert create_component("Ground", "G1").terminal_count() == 1


class TestParameters:

    def test_defaults(self):
        source = create_component("PowerSource", "V1")
        assert source.params == {'voltage': 12.0, 'internal_resistance': 0.5}

    def test_unit_strings(self):
        capacitor = create_component("Capacitor", "C1", capacitance="470 uF")
        assert capacitor.params['capacitance'] == pytest.approx(470e-6)
        resistor = create_component("Resistor", "R1", resistance="4.7 kohm")
        assert resistor.params['resistance'] == pytest.approx(4700.0)

    def test_plain_numbers_are_si(self):
        inductor = create_component("Inductor", "L1", inductance=0.25)
        assert inductor.params['inductance'] == 0.25

    def test_unknown_parameter(self):
        with pytest.raises(ComponentError) as exc_info:
            create_component("Resistor", "R1", colour="red")
        assert "Unknown parameter 'colour'" in str(exc_info.value)

    @pytest.mark.parametrize("value", ["10 V", "banana", True])
    def test_bad_values(self, value):
        with pytest.raises(ComponentError):
            create_component("Resistor", "R1", resistance=value)

    def test_choices(self):
        with pytest.raises(ComponentError):
            create_component("SPDTSwitch", "S1", position="c")
        with pytest.raises(ComponentError):
            create_component("Capacitor", "C1", integration_method="runge-kutta")

    def test_flags_are_coerced(self):
        assert create_component("Switch", "S1", closed=1).params['closed'] is True
        assert create_component("Switch", "S2", closed=0).params['closed'] is False

    def test_infinite_voltmeter_resistance(self):
        meter = create_component("Voltmeter", "VM", resistance="inf")
        assert math.isinf(meter.params['resistance'])
        assert meter.is_ideal()


class TestCapabilities:

    def test_nonlinear_devices(self):
        for kind in ComponentKind:
            comp = create_component(kind, "X1")
            assert comp.is_nonlinear() is (kind in NONLINEAR_KINDS)
            assert (comp.get_capability(INonlinearContributor) is not None) is (kind in NONLINEAR_KINDS)

    @pytest.mark.parametrize("kind", ["Capacitor", "ParallelPlateCapacitor", "Inductor", "Motor", "Fuse"])
    def test_dynamic_devices(self, kind):
        assert create_component(kind, "X1").get_capability(IDynamicContributor) is not None

    def test_capability_instance_is_cached(self):
        resistor = create_component("Resistor", "R1")
        assert resistor.get_capability(IMnaContributor) is resistor.get_capability(IMnaContributor)
        assert resistor.get_capability(IDynamicContributor) is None

    @pytest.mark.parametrize("kind, params, expected", [
        ("PowerSource", {}, False),
        ("PowerSource", {"internal_resistance": 0.0}, True),
        ("ACVoltageSource", {"internal_resistance": 0.0}, True),
        ("Ammeter", {}, True),
        ("Ammeter", {"resistance": 0.1}, False),
        ("Motor", {}, True),
        ("Resistor", {}, False),
    ])
    def test_auxiliary_equation(self, kind, params, expected):
        assert create_component(kind, "X1", **params).requires_auxiliary_equation() is expected


class TestDeviceModels:

    def test_ac_source_waveform(self):
        source = create_component("ACVoltageSource", "V1", rms_voltage=10.0, frequency=50.0, phase=90.0, offset=1.0)
        assert source.emf(0.0) == pytest.approx(1.0 + 10.0 * math.sqrt(2.0))
        assert source.emf(0.005) == pytest.approx(1.0, abs=1e-9)

    def test_thermistor(self):
        thermistor = create_component("Thermistor", "T1", resistance_at_25=1000.0)
        assert thermistor.resistance() == pytest.approx(1000.0)
        thermistor.set_parameter("temperature_c", 50.0)
        assert thermistor.resistance() < 1000.0

    def test_photoresistor(self):
        ldr = create_component("Photoresistor", "P1", light_level=1.5)
        assert ldr.resistance() == pytest.approx(500.0)
        ldr.set_parameter("light_level", 0.0)
        assert ldr.resistance() == pytest.approx(1.0e5)

    def test_rheostat_sections(self):
        rheostat = create_component("Rheostat", "P1", min_resistance=0.0, max_resistance=100.0, position=0.25)
        assert rheostat.section_resistances() == pytest.approx((25.0, 75.0))
        rheostat.set_parameter("position", 0.0)
        assert rheostat.section_resistances()[0] == pytest.approx(1e-9)

    @pytest.mark.parametrize("nodes, mode", [
        ([1, 2, 3], RheostatConnectionMode.ALL),
        ([1, -1, 3], RheostatConnectionMode.LEFT_SLIDER),
        ([-1, 2, 3], RheostatConnectionMode.RIGHT_SLIDER),
        ([1, 2, -1], RheostatConnectionMode.LEFT_RIGHT),
        ([-1, -1, 3], RheostatConnectionMode.SLIDER_ONLY),
        ([-1, -1, -1], RheostatConnectionMode.NONE),
    ])
    def test_rheostat_connection_mode(self, nodes, mode):
        assert rheostat_connection_mode(nodes) is mode

    def test_led_brightness_is_clamped(self):
        led = create_component("LED", "L1")
        assert led.brightness(0.04, 2.0) == 1.0
        assert led.brightness(-0.01, 2.0) == 0.0

    def test_repr(self):
        resistor = create_component("Resistor", "R1", nodes=[1, 0])
        assert repr(resistor) == "Resistor(id='R1', nodes=[1, 0])"
        assert str(resistor) == "Resistor('R1')"
