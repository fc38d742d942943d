"""
Lift-Truck Fleet Tariff Study

Runs the same warehouse fleet for several weeks under each tariff kind and
compares how the charging policy chosen by the tariff shapes grid draw,
energy cost and battery reserves.

Tariffs:
- FLAT: flat rate, chargers run as early as possible
- TOU: weekday peak/off-peak, charging shifted to cheap hours
- REG: flat rate paying for regulation capacity, chargers keep headroom

Metrics:
- Total energy drawn and its cost
- Average price paid per kWh
- Borrowing events (trucks running short of energy)
- Minimum charging-pool energy
- Mean unused charger headroom per hour

Outputs (under results/):
- fleet_history.csv: one row per tariff and hour
- fleet_summary.csv: one row per tariff
- pool_energy.png, hourly_draw.png, tariff_comparison.png
"""

import os
import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from lifttruck import (
    FleetState,
    LiftTruck,
    LiftTruckConfig,
    TariffSubscription,
    create_flat_tariff,
    create_regulation_tariff,
    create_tou_tariff,
    simulate,
    summarize,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Suppress matplotlib font warnings and per-step model chatter
logging.getLogger("matplotlib.font_manager").setLevel(logging.ERROR)
logging.getLogger("lifttruck").setLevel(logging.WARNING)

# Create results directory
RESULTS_DIR = "results"
os.makedirs(RESULTS_DIR, exist_ok=True)

START = datetime(2024, 1, 7)  # a Sunday, grid index 0
WEEKS = 4
SEED = 42

COLORS = {"FLAT": "#1976D2", "TOU": "#2E7D32", "REG": "#E64A19"}


@dataclass
class StudyResult:
    """Results from one tariff run."""

    tariff_name: str
    policy: str
    hours: int

    energy_drawn_kwh: float
    energy_cost: float
    avg_price: float

    truck_usage_kwh: float
    borrowing_events: int
    borrowed_kwh: float
    min_energy_charging: float

    avg_headroom_kwh: float


def build_tariffs() -> Dict:
    """Tariffs compared in the study, keyed by short name."""
    return {
        "FLAT": create_flat_tariff(0.14),
        "TOU": create_tou_tariff(
            peak_price=0.28,
            off_peak_price=0.09,
            peak_start=7,
            peak_end=21,
            peak_days=[2, 3, 4, 5, 6],
        ),
        "REG": create_regulation_tariff(0.14, regulation_rate=0.04),
    }


def run_tariff(name: str, tariff, config: LiftTruckConfig) -> Tuple[StudyResult, pd.DataFrame]:
    """
    Simulate the fleet for WEEKS weeks under one tariff.

    Returns:
        StudyResult and the hourly history as a DataFrame
    """
    logger.info(f"Running {name} ({tariff})")

    truck = LiftTruck(config, seed=SEED, state=FleetState(energy_charging=500.0))
    subscription = TariffSubscription(tariff, customer_name=config.name)
    records = simulate(truck, START, WEEKS * 168, subscription)
    summary = summarize(records, tariff)

    history = pd.DataFrame(truck.export_history())
    history["tariff"] = name
    history["time"] = pd.to_datetime(history["time"])
    history["price"] = [tariff.get_usage_charge(r.time) for r in records]

    efficiency = config.charge_efficiency
    headroom = truck.charger_capacity - history["energy_drawn_kwh"] * efficiency

    result = StudyResult(
        tariff_name=name,
        policy=summary["policies"][0],
        hours=summary["steps"],
        energy_drawn_kwh=summary["energy_drawn_kwh"],
        energy_cost=summary["energy_cost"],
        avg_price=summary["avg_price"],
        truck_usage_kwh=summary["truck_usage_kwh"],
        borrowing_events=summary["borrowing_events"],
        borrowed_kwh=summary["borrowed_kwh"],
        min_energy_charging=summary["min_energy_charging"],
        avg_headroom_kwh=float(np.mean(headroom)),
    )
    return result, history


# =============================================================================
# Visualization
# =============================================================================


def plot_pool_energy(history: pd.DataFrame, output_path: str):
    """Charging-pool and in-truck energy over the first week."""
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(14, 8), sharex=True)

    first_week = history[history["time"] < START + pd.Timedelta(days=7)]
    for name, group in first_week.groupby("tariff"):
        ax1.plot(group["time"], group["energy_charging"], label=name,
                 color=COLORS.get(name), linewidth=1.5)
        ax2.plot(group["time"], group["energy_in_use"], label=name,
                 color=COLORS.get(name), linewidth=1.5)

    ax1.axhline(0.0, color="black", linewidth=0.8)
    ax1.set_ylabel("Charging pool (kWh)", fontsize=11, fontweight="bold")
    ax1.set_title("Battery Energy by Tariff", fontsize=12, fontweight="bold")
    ax1.legend()
    ax1.grid(True, alpha=0.3)

    ax2.set_ylabel("In trucks (kWh)", fontsize=11, fontweight="bold")
    ax2.set_xlabel("Time", fontsize=11, fontweight="bold")
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=300, bbox_inches="tight")
    plt.close()
    logger.info(f"Saved pool energy plot to {output_path}")


def plot_hourly_draw(history: pd.DataFrame, output_path: str):
    """Average grid draw by hour of day, weekdays only."""
    fig, ax = plt.subplots(figsize=(12, 6))

    weekdays = history[history["time"].dt.dayofweek < 5]
    profile = weekdays.groupby(["tariff", weekdays["time"].dt.hour])["energy_drawn_kwh"].mean()

    for name in profile.index.get_level_values(0).unique():
        ax.plot(profile[name].index, profile[name].values, marker="o",
                label=name, color=COLORS.get(name))

    ax.set_xlabel("Hour of day", fontsize=11, fontweight="bold")
    ax.set_ylabel("Mean grid draw (kWh)", fontsize=11, fontweight="bold")
    ax.set_title("Weekday Charging Profile", fontsize=12, fontweight="bold")
    ax.set_xticks(range(0, 24, 2))
    ax.legend()
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=300, bbox_inches="tight")
    plt.close()
    logger.info(f"Saved hourly draw plot to {output_path}")


def plot_tariff_comparison(results: List[StudyResult], output_path: str):
    """Bar charts of cost, average price and headroom per tariff."""
    fig, (ax1, ax2, ax3) = plt.subplots(1, 3, figsize=(16, 5))

    names = [r.tariff_name for r in results]
    colors = [COLORS.get(n) for n in names]

    ax1.bar(names, [r.energy_cost for r in results], color=colors, alpha=0.8)
    ax1.set_ylabel("Cost ($)", fontsize=11, fontweight="bold")
    ax1.set_title("Energy Cost", fontsize=12, fontweight="bold")
    ax1.grid(True, alpha=0.3, axis="y")

    ax2.bar(names, [r.avg_price for r in results], color=colors, alpha=0.8)
    ax2.set_ylabel("$/kWh", fontsize=11, fontweight="bold")
    ax2.set_title("Average Price Paid", fontsize=12, fontweight="bold")
    ax2.grid(True, alpha=0.3, axis="y")

    ax3.bar(names, [r.avg_headroom_kwh for r in results], color=colors, alpha=0.8)
    ax3.set_ylabel("kWh per hour", fontsize=11, fontweight="bold")
    ax3.set_title("Unused Charger Headroom", fontsize=12, fontweight="bold")
    ax3.grid(True, alpha=0.3, axis="y")

    plt.tight_layout()
    plt.savefig(output_path, dpi=300, bbox_inches="tight")
    plt.close()
    logger.info(f"Saved tariff comparison to {output_path}")


# =============================================================================
# Main Execution
# =============================================================================


def main():
    """
    Run the tariff comparison study.
    """
    logger.info("=" * 80)
    logger.info("LIFT-TRUCK FLEET TARIFF STUDY")
    logger.info("=" * 80)

    config = LiftTruckConfig(name="warehouse-1")

    results = []
    histories = []
    for name, tariff in build_tariffs().items():
        result, history = run_tariff(name, tariff, config)
        results.append(result)
        histories.append(history)

    history = pd.concat(histories, ignore_index=True)
    summary = pd.DataFrame([asdict(r) for r in results])

    history.to_csv(os.path.join(RESULTS_DIR, "fleet_history.csv"), index=False)
    summary.to_csv(os.path.join(RESULTS_DIR, "fleet_summary.csv"), index=False)

    plot_pool_energy(history, os.path.join(RESULTS_DIR, "pool_energy.png"))
    plot_hourly_draw(history, os.path.join(RESULTS_DIR, "hourly_draw.png"))
    plot_tariff_comparison(results, os.path.join(RESULTS_DIR, "tariff_comparison.png"))

    # Print summary
    logger.info("\n" + "=" * 80)
    logger.info("STUDY SUMMARY")
    logger.info("=" * 80)

    for r in results:
        logger.info(f"\n{r.tariff_name} ({r.policy})")
        logger.info(
            f"  Drawn {r.energy_drawn_kwh:.0f}kWh, cost ${r.energy_cost:.2f}, "
            f"avg ${r.avg_price:.3f}/kWh"
        )
        logger.info(
            f"  Borrowing events={r.borrowing_events} ({r.borrowed_kwh:.1f}kWh), "
            f"min pool {r.min_energy_charging:.1f}kWh, "
            f"headroom {r.avg_headroom_kwh:.1f}kWh/h"
        )

    logger.info("\n" + "=" * 80)
    logger.info("All results saved to: " + RESULTS_DIR)
    logger.info("=" * 80)

    return results


if __name__ == "__main__":
    results = main()
