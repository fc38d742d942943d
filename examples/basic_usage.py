"""
Basic Usage Example for the Lift-Truck Fleet Model.

This example demonstrates how to:
1. Create a fleet configuration
2. Inspect the sizing checks and the weekly schedule
3. Step the model through one working day
4. Look at the energy plan and statistics
5. Save and resume the fleet state
"""

from datetime import datetime

from lifttruck import (
    FleetState,
    LiftTruck,
    LiftTruckConfig,
    TariffSubscription,
    create_tou_tariff,
    index_of_time,
    simulate,
)


def main():
    print("=" * 60)
    print("Lift-Truck Fleet Basic Usage Example")
    print("=" * 60)

    # Step 1: Create fleet configuration
    print("\n1. Creating fleet configuration...")
    config = LiftTruckConfig(
        name="warehouse-1",
        truck_kw=4.0,            # Mean power per working truck (kW)
        battery_capacity=50.0,   # One battery pack (kWh)
        n_batteries=12,          # Deliberately short
        n_chargers=8,
        max_charge_kw=6.0,
        enable_logging=True
    )
    print(f"   Config: {config.n_batteries} batteries, {config.n_chargers} chargers")

    # Step 2: Create the model
    print("\n2. Initializing fleet model...")
    truck = LiftTruck(config, seed=42, state=FleetState(energy_charging=500.0))
    print(f"   Model: {truck}")
    print(f"   Battery sizing: need {truck.battery_sizing.required}, "
          f"added {truck.battery_sizing.added}")
    print(f"   Charger sizing: worst day {truck.charger_sizing.max_needed_kwh:.0f}kWh, "
          f"need {truck.charger_sizing.required} chargers")

    print("\n   Schedule runs:")
    for start, length, shift in truck.grid.segments()[:6]:
        print(f"     index {start:3d} +{length:2d}h: {shift or 'idle'}")

    # Step 3: Run one Monday under a time-of-use tariff
    print("\n3. Running Monday under a time-of-use tariff...")
    tariff = create_tou_tariff(peak_price=0.28, off_peak_price=0.09,
                               peak_start=7, peak_end=21)
    subscription = TariffSubscription(tariff, customer_name="warehouse-1")
    monday = datetime(2024, 1, 8)
    records = simulate(truck, monday, 24, subscription)

    print("\n   Hour  Trucks  Used   Drawn  Pool")
    for r in records:
        print(f"   {r.time.hour:4d}  {r.active_trucks:6d}  {r.usage_kwh:5.1f}  "
              f"{r.energy_drawn_kwh:5.1f}  {r.energy_charging:6.1f}")

    # Step 4: Energy plan and statistics
    print("\n4. Energy plan from Tuesday 06:00:")
    plan = truck.ensure_future_energy_needs(index_of_time(datetime(2024, 1, 9, 6)))
    for segment in plan[:4]:
        print(f"     -> {segment.next_shift or 'idle'} in {segment.duration}h: "
              f"need {segment.energy_needed:.0f}kWh, bank {segment.energy_required:.0f}kWh, "
              f"surplus {segment.max_surplus:.0f}kWh")

    stats = truck.get_statistics()
    print(f"\n   Energy drawn: {stats['energy_drawn']['sum']:.1f}kWh")
    print(f"   Truck usage: {stats['truck_usage']['sum']:.1f}kWh")
    print(f"   Borrowing events: {stats['borrowing_events']}")
    print(f"   Minimum charging pool: {stats['min_energy_charging']:.1f}kWh")

    # Step 5: Bootstrap
    print("\n5. Saving and resuming state...")
    data = truck.get_bootstrap_state()
    resumed = LiftTruck.from_bootstrap(LiftTruckConfig(name="warehouse-1"), data, seed=43)
    print(f"   Resumed: {resumed}, shift {resumed.current_shift or 'idle'}")

    print("\n" + "=" * 60)
    print("Example completed successfully!")
    print("=" * 60)


if __name__ == '__main__':
    main()
