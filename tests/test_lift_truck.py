"""
Tests for the LiftTruck fleet model.

This module tests:
- Sizing remediation at construction
- Battery swaps at shift transitions
- Discharge and borrowing from the charging pool
- The per-step charging decision under each tariff type
- Bootstrap state, regulation and statistics
"""

import unittest
from datetime import datetime, timedelta

import pytest

from lifttruck import (
    FleetState,
    LiftTruck,
    LiftTruckConfig,
    Shift,
    StepInfo,
    TariffSubscription,
    create_flat_tariff,
    create_regulation_tariff,
    create_tou_tariff,
    simulate,
)

SUNDAY = datetime(2024, 1, 7)
MONDAY = datetime(2024, 1, 8)


def make_truck(energy_charging=500.0, **kwargs):
    """Deterministic default fleet: no usage noise."""
    kwargs.setdefault('truck_std', 0.0)
    config = LiftTruckConfig(**kwargs)
    return LiftTruck(config, seed=0, state=FleetState(energy_charging=energy_charging))


def step_at(truck, when, tariff=None):
    info = StepInfo(time=when, subscription=TariffSubscription(tariff or create_flat_tariff()))
    drawn = truck.step(info)
    return drawn, info


class TestConstruction(unittest.TestCase):
    """Test fleet construction."""

    def test_defaults_need_no_remediation(self):
        truck = make_truck()
        self.assertEqual(truck.n_batteries, 15)
        self.assertEqual(truck.n_chargers, 8)
        self.assertFalse(truck.battery_sizing.remediated)
        self.assertFalse(truck.charger_sizing.remediated)

    def test_undersized_fleet_expanded(self):
        truck = make_truck(n_batteries=5, n_chargers=1)
        self.assertEqual(truck.n_batteries, 14)
        self.assertEqual(truck.n_chargers, 4)

    def test_invalid_config_rejected(self):
        with self.assertRaises(ValueError):
            LiftTruck(LiftTruckConfig(battery_capacity=0.0))
        with self.assertRaises(ValueError):
            LiftTruck(LiftTruckConfig(charge_efficiency=1.5))

    def test_in_use_energy_pooled_on_init(self):
        truck = LiftTruck(state=FleetState(
            capacity_in_use=100.0, energy_in_use=80.0, energy_charging=200.0))
        self.assertEqual(truck.state.capacity_in_use, 0.0)
        self.assertEqual(truck.state.energy_in_use, 0.0)
        self.assertAlmostEqual(truck.state.energy_charging, 280.0)
        self.assertIsNone(truck.current_shift)

    def test_capacities(self):
        truck = make_truck()
        self.assertAlmostEqual(truck.charger_capacity, 48.0)
        self.assertAlmostEqual(truck.total_capacity, 750.0)
        self.assertAlmostEqual(truck.available_room, 250.0)


class TestShiftTransition(unittest.TestCase):
    """Test battery swaps at shift changes."""

    def setUp(self):
        self.truck = make_truck(energy_charging=500.0)

    def test_swap_conserves_energy(self):
        self.truck.start_shift(Shift(8, 8, 8))
        self.assertAlmostEqual(self.truck.state.capacity_in_use, 400.0)
        self.assertAlmostEqual(self.truck.state.energy_in_use, 400.0)
        self.assertAlmostEqual(self.truck.state.energy_charging, 100.0)
        self.assertAlmostEqual(self.truck.state.total_energy, 500.0)
        self.assertEqual(self.truck.current_shift, Shift(8, 8, 8))

    def test_going_idle_returns_all_batteries(self):
        self.truck.start_shift(Shift(8, 8, 8))
        self.truck.state.energy_in_use -= 50.0
        self.truck.start_shift(None)
        self.assertEqual(self.truck.state.capacity_in_use, 0.0)
        self.assertEqual(self.truck.state.energy_in_use, 0.0)
        self.assertAlmostEqual(self.truck.state.energy_charging, 450.0)

    def test_low_energy_fills_trucks_first(self):
        truck = make_truck(energy_charging=100.0)
        truck.start_shift(Shift(8, 8, 8))
        self.assertAlmostEqual(truck.state.energy_in_use, 100.0)
        self.assertAlmostEqual(truck.state.energy_charging, 0.0)

    def test_step_detects_transition(self):
        step_at(self.truck, MONDAY.replace(hour=8))
        record = self.truck.get_current_record()
        self.assertTrue(record.shift_changed)
        self.assertEqual(record.shift, Shift(8, 8, 8))

        step_at(self.truck, MONDAY.replace(hour=9))
        self.assertFalse(self.truck.get_current_record().shift_changed)


class TestDischarge:
    """Tests for truck usage and borrowing."""

    def test_borrow_from_charging_pool(self):
        truck = make_truck()
        truck.state = FleetState(capacity_in_use=50.0, energy_in_use=5.0, energy_charging=20.0)
        deficit = truck.discharge(8.0)
        assert deficit == pytest.approx(3.0)
        assert truck.state.energy_in_use == pytest.approx(0.0)
        assert truck.state.energy_charging == pytest.approx(17.0)

    def test_no_borrow_when_covered(self):
        truck = make_truck()
        truck.state = FleetState(capacity_in_use=50.0, energy_in_use=30.0, energy_charging=20.0)
        assert truck.discharge(8.0) < 0.0
        assert truck.state.energy_in_use == pytest.approx(22.0)
        assert truck.state.energy_charging == pytest.approx(20.0)

    def test_idle_uses_nothing(self):
        truck = make_truck(truck_std=5.0)
        assert truck.current_shift is None
        assert truck.sample_usage() == 0.0

    def test_idle_hours_skip_the_draw(self):
        # no N(0, std) sample is taken while idle, so the random stream is untouched
        idle_first = make_truck(truck_std=5.0)
        for _ in range(5):
            idle_first.sample_usage()
        working = make_truck(truck_std=5.0)
        for truck in (idle_first, working):
            truck.start_shift(Shift(8, 8, 2))
        assert idle_first.sample_usage() == working.sample_usage()

    def test_usage_never_negative(self):
        truck = make_truck(truck_kw=0.1, truck_std=10.0)
        truck.start_shift(Shift(8, 8, 1))
        assert all(truck.sample_usage() >= 0.0 for _ in range(200))

    def test_borrowing_step_warns(self, caplog):
        truck = make_truck(energy_charging=20.0)
        step_at(truck, MONDAY.replace(hour=8))
        record = truck.get_current_record()
        # 32kWh used, 20kWh in the trucks
        assert record.deficit_kwh == pytest.approx(12.0)
        assert len(record.warnings) == 2
        # early charging then refills 48kWh
        assert record.energy_charging == pytest.approx(36.0)
        assert any("more energy than available" in r.message for r in caplog.records)


class TestChargingStep:
    """Tests for the charging decision made each step."""

    def test_early_charging(self):
        truck = make_truck()
        drawn, info = step_at(truck, MONDAY.replace(hour=8))
        assert drawn == pytest.approx(48.0 / 0.9)
        assert info.kwh == pytest.approx(drawn)
        assert truck.state.energy_in_use == pytest.approx(368.0)
        assert truck.state.energy_charging == pytest.approx(148.0)
        assert truck.get_current_record().policy == "early"

    def test_idle_hour_charges(self):
        truck = make_truck()
        drawn, _ = step_at(truck, SUNDAY)
        record = truck.get_current_record()
        assert not record.shift_changed
        assert record.usage_kwh == 0.0
        assert drawn == pytest.approx(48.0 / 0.9)

    def test_full_batteries_draw_nothing(self):
        truck = make_truck(energy_charging=750.0)
        drawn, _ = step_at(truck, SUNDAY)
        assert drawn == 0.0

    def test_regulation_stores_only_requirement(self):
        truck = make_truck(energy_charging=500.0)
        drawn, _ = step_at(truck, MONDAY.replace(hour=8), create_regulation_tariff())
        # next shift needs 192kWh, 100kWh charging, 8 hours left
        assert drawn == pytest.approx(11.5 / 0.9)
        assert truck.get_current_record().policy == "regulation"

    def test_regulation_idle_when_covered(self):
        truck = make_truck(energy_charging=600.0)
        drawn, _ = step_at(truck, MONDAY.replace(hour=8), create_regulation_tariff())
        assert drawn == 0.0

    def test_time_of_use_waits_for_cheaper_hours(self):
        tariff = create_tou_tariff(0.30, 0.10, peak_start=7, peak_end=12)
        truck = make_truck(energy_charging=500.0)
        drawn, _ = step_at(truck, MONDAY.replace(hour=8), tariff)
        assert drawn == pytest.approx(11.5 / 0.9)
        assert truck.get_current_record().policy == "time_of_use"

    def test_time_of_use_charges_in_cheapest_hour(self):
        tariff = create_tou_tariff(0.30, 0.10, peak_start=7, peak_end=12)
        truck = make_truck(energy_charging=500.0)
        drawn, _ = step_at(truck, MONDAY, tariff)
        assert drawn == pytest.approx(48.0 / 0.9)

    @pytest.mark.parametrize("tariff_factory", [
        create_flat_tariff,
        create_regulation_tariff,
        lambda: create_tou_tariff(0.30, 0.10),
    ])
    def test_draw_within_charger_capacity(self, tariff_factory):
        truck = LiftTruck(LiftTruckConfig(), seed=11, state=FleetState(energy_charging=400.0))
        records = simulate(truck, SUNDAY, 168, TariffSubscription(tariff_factory()))
        eff = truck.config.charge_efficiency
        assert all(0.0 <= r.energy_drawn_kwh * eff <= truck.charger_capacity + 1e-9
                   for r in records)


class TestRegulate(unittest.TestCase):

    def test_up_regulation_removes_stored_energy(self):
        truck = make_truck(energy_charging=500.0)
        truck.regulate(10.0)
        self.assertAlmostEqual(truck.state.energy_charging, 491.0)
        self.assertAlmostEqual(truck.total_regulation_kwh, 10.0)

    def test_down_regulation_adds_energy(self):
        truck = make_truck(energy_charging=500.0)
        truck.regulate(-10.0)
        self.assertAlmostEqual(truck.state.energy_charging, 509.0)


class TestBootstrap(unittest.TestCase):
    """Test saving and resuming fleet state."""

    def setUp(self):
        self.truck = LiftTruck(LiftTruckConfig(), seed=3,
                               state=FleetState(energy_charging=500.0))
        simulate(self.truck, MONDAY.replace(hour=6), 5,
                 TariffSubscription(create_flat_tariff()))

    def test_state_round_trip(self):
        data = self.truck.get_bootstrap_state()
        self.assertEqual(FleetState.from_dict(data), self.truck.state)
        self.assertEqual(data['shift_data'], self.truck.grid.shift_data)

    def test_resume_restores_state_verbatim(self):
        truck = make_truck()
        simulate(truck, MONDAY.replace(hour=8), 2, TariffSubscription(create_flat_tariff()))
        data = truck.get_bootstrap_state()

        restored = LiftTruck.from_bootstrap(LiftTruckConfig(truck_std=0.0), data, seed=0)
        self.assertEqual(restored.state, truck.state)
        self.assertEqual(restored.current_shift, Shift(8, 8, 8))
        self.assertEqual(restored.grid.shift_data, truck.grid.shift_data)

        # the resumed fleet continues exactly like the original one
        expected, _ = step_at(truck, MONDAY.replace(hour=10))
        drawn, _ = step_at(restored, MONDAY.replace(hour=10))
        record = restored.get_current_record()
        self.assertFalse(record.shift_changed)
        self.assertEqual(record.deficit_kwh, 0.0)
        self.assertAlmostEqual(drawn, expected)
        self.assertEqual(restored.state, truck.state)

    def test_resume_shift_from_time(self):
        truck = make_truck()
        simulate(truck, MONDAY.replace(hour=8), 2, TariffSubscription(create_flat_tariff()))
        data = truck.get_bootstrap_state()
        del data['current_shift']

        restored = LiftTruck.from_bootstrap(LiftTruckConfig(truck_std=0.0), data,
                                            when=MONDAY.replace(hour=10))
        self.assertEqual(restored.current_shift, Shift(8, 8, 8))
        step_at(restored, MONDAY.replace(hour=10))
        self.assertFalse(restored.get_current_record().shift_changed)

    def test_resume_idle(self):
        data = make_truck().get_bootstrap_state()
        self.assertIsNone(data['current_shift'])
        restored = LiftTruck.from_bootstrap(LiftTruckConfig(), data)
        self.assertIsNone(restored.current_shift)
        self.assertEqual(restored.state.energy_charging, 500.0)

    def test_custom_schedule_restored(self):
        config = LiftTruckConfig(shift_data=["block", "3", "shift", "6", "10", "4"])
        truck = LiftTruck(config, seed=1)
        restored = LiftTruck.from_bootstrap(LiftTruckConfig(), truck.get_bootstrap_state())
        self.assertEqual(restored.grid.shift_at(48 + 6), Shift(6, 10, 4))


class TestCarriedShortage:
    """A heavy shift after a short idle gap must be charged for in advance."""

    SHIFT_DATA = ["block", "2", "shift", "0", "10", "5", "shift", "12", "12", "10"]

    def setup_method(self):
        self.truck = make_truck(energy_charging=200.0, shift_data=list(self.SHIFT_DATA))

    @pytest.mark.parametrize("tariff", [
        create_regulation_tariff(),
        create_tou_tariff(0.30, 0.10, peak_start=0, peak_end=8),
        create_flat_tariff(),
    ], ids=["regulation", "time_of_use", "early"])
    def test_no_borrowing(self, tariff):
        records = simulate(self.truck, MONDAY, 24, TariffSubscription(tariff))

        assert [r.shift for r in records[11:13]] == [None, Shift(12, 12, 10)]
        for record in records:
            assert record.deficit_kwh == pytest.approx(0.0, abs=1e-6)
        # the heavy shift needs 480kWh when it starts
        assert records[11].energy_charging >= 480.0 - 1e-6

    def test_regulation_charges_during_first_shift(self):
        records = simulate(self.truck, MONDAY, 12, TariffSubscription(create_regulation_tariff()))

        # 384kWh over the 10h shift, the rest in the 2h gap
        stored = [r.energy_drawn_kwh * self.truck.config.charge_efficiency for r in records]
        assert sum(stored[:10]) == pytest.approx(384.0)
        assert stored[10] == pytest.approx(48.0)
        assert stored[11] == pytest.approx(48.0)


class TestStatistics(unittest.TestCase):

    def test_empty_history(self):
        self.assertIn('error', make_truck().get_statistics())

    def test_seeded_runs_reproducible(self):
        runs = []
        for _ in range(2):
            truck = LiftTruck(LiftTruckConfig(), seed=7, state=FleetState(energy_charging=500.0))
            simulate(truck, MONDAY, 48, TariffSubscription(create_flat_tariff()))
            runs.append([r.usage_kwh for r in truck.history])
        self.assertEqual(runs[0], runs[1])

    def test_statistics_after_run(self):
        truck = make_truck()
        simulate(truck, MONDAY, 24, TariffSubscription(create_flat_tariff()))
        stats = truck.get_statistics()
        self.assertEqual(stats['total_steps'], 24)
        # idle -> night -> day -> evening
        self.assertEqual(stats['shift_changes'], 3)
        self.assertAlmostEqual(stats['truck_usage']['sum'], 544.0)
        self.assertEqual(len(truck.export_history()), 24)

        truck.reset_history()
        self.assertIsNone(truck.get_current_record())


if __name__ == '__main__':
    unittest.main()
