"""Tariff rate loading, validation and persistence."""

import os
from dataclasses import fields, replace
from pathlib import Path

import yaml

from .db import get_connection
from .models import TariffRates

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "tariffs.yaml"

# Serbian commercial tariff (RSD)
DEFAULT_RATES = TariffRates(
    name="default",
    active_energy_vt=12.56,
    active_energy_nt=4.84,
    approved_power_price=65.43,
    distribution_vt=3.42,
    distribution_nt=1.12,
    fee_oie=0.801,
    fee_efficiency=0.015,
    subscription_fee=0.0,
    excise_tax_percent=7.5,
    vat_percent=20.0,
    reactive_energy_price=1.13,
    excess_reactive_energy_price=2.261,
    peak_excess_price=695.504,
    investment_cost=4_000_000.0,
)

RATE_KEYS = [f.name for f in fields(TariffRates) if f.name != "name"]
PERCENT_KEYS = {"excise_tax_percent", "vat_percent"}


def validate_rates(rates: TariffRates) -> TariffRates:
    """Check that prices are non-negative and percentages lie in [0, 100].

    Returns the rates unchanged so it can be used inline.
    """
    for key in RATE_KEYS:
        value = getattr(rates, key)
        if value < 0:
            raise ValueError(f"Tariff '{rates.name}': {key} must be non-negative, got {value}")
        if key in PERCENT_KEYS and value > 100:
            raise ValueError(f"Tariff '{rates.name}': {key} must be at most 100, got {value}")
    return rates


def rates_from_dict(name: str, data: dict, base: TariffRates = DEFAULT_RATES) -> TariffRates:
    """Build validated rates from a mapping, filling gaps from `base`."""
    unknown = set(data) - set(RATE_KEYS)
    if unknown:
        raise ValueError(f"Tariff '{name}': unknown rate keys {sorted(unknown)}")
    values = {key: float(value) for key, value in data.items()}
    return validate_rates(replace(base, name=name, **values))


def get_config_path(config_path: Path | None = None) -> Path:
    """Find the tariffs.yaml config file."""
    if config_path:
        return config_path
    candidates = [
        Path(os.environ["SOLARBILL_TARIFFS"]) if os.environ.get("SOLARBILL_TARIFFS") else None,
        Path.cwd() / "config" / "tariffs.yaml",
        DEFAULT_CONFIG_PATH,
    ]
    for path in candidates:
        if path and path.exists():
            return path
    raise FileNotFoundError("Could not find config/tariffs.yaml")


def load_rates_from_yaml(config_path: Path | None = None) -> list[TariffRates]:
    """Load tariff rate sets from YAML config file."""
    path = get_config_path(config_path)
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    tariffs = []
    for t in data.get("tariffs", []):
        if not t.get("name"):
            raise ValueError(f"{path.name}: tariff entry without a name")
        tariffs.append(rates_from_dict(t["name"], t.get("rates") or {}))
    return tariffs


def save_rates_to_db(tariffs: list[TariffRates], db_path: Path | None = None) -> int:
    """Save tariff rate sets to the database. Returns number of tariffs saved."""
    count = 0
    with get_connection(db_path) as conn:
        for rates in tariffs:
            conn.execute("DELETE FROM tariff_rates WHERE tariff_name = ?", (rates.name,))
            conn.executemany(
                "INSERT INTO tariff_rates (tariff_name, key, value) VALUES (?, ?, ?)",
                [(rates.name, key, getattr(rates, key)) for key in RATE_KEYS],
            )
            count += 1
        conn.commit()
    return count


def get_rates(name: str = "default", db_path: Path | None = None) -> TariffRates:
    """Get a tariff rate set from the database, or DEFAULT_RATES if none is stored."""
    with get_connection(db_path) as conn:
        rows = conn.execute(
            "SELECT key, value FROM tariff_rates WHERE tariff_name = ?", (name,)
        ).fetchall()

    if not rows:
        if name == DEFAULT_RATES.name:
            return DEFAULT_RATES
        raise ValueError(f"No tariff named '{name}'")

    # Keys written by older versions are ignored rather than rejected
    stored = {row["key"]: row["value"] for row in rows if row["key"] in RATE_KEYS}
    return rates_from_dict(name, stored)
