"""Tests for tariff loading, validation and storage."""

from dataclasses import replace

import pytest
from solarbill.models import TariffRates
from solarbill.tariffs import (
    DEFAULT_RATES,
    get_rates,
    load_rates_from_yaml,
    rates_from_dict,
    save_rates_to_db,
    validate_rates,
)

YAML = """
tariffs:
  - name: default
    rates:
      active_energy_vt: 13.1
      vat_percent: 20
  - name: flat
    rates:
      subscription_fee: 250
"""


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "tariffs.yaml"
    path.write_text(YAML)
    return path


def test_load_rates_from_yaml_fills_missing_keys(config_path):
    tariffs = load_rates_from_yaml(config_path)

    assert [t.name for t in tariffs] == ["default", "flat"]
    assert tariffs[0].active_energy_vt == 13.1
    assert tariffs[0].active_energy_nt == DEFAULT_RATES.active_energy_nt
    assert tariffs[1].subscription_fee == 250
    assert tariffs[1].peak_excess_price == DEFAULT_RATES.peak_excess_price


def test_repository_config_matches_defaults():
    tariffs = load_rates_from_yaml()
    assert tariffs[0] == DEFAULT_RATES


def test_tariff_without_name_rejected(tmp_path):
    path = tmp_path / "nameless.yaml"
    path.write_text("tariffs:\n  - rates:\n      vat_percent: 20\n")

    with pytest.raises(ValueError, match="without a name"):
        load_rates_from_yaml(path)


def test_unknown_rate_key_rejected():
    with pytest.raises(ValueError, match="unknown rate keys"):
        rates_from_dict("typo", {"active_energy_vtt": 1})


def test_validate_rates():
    assert validate_rates(DEFAULT_RATES) is DEFAULT_RATES
    assert validate_rates(TariffRates()) == TariffRates()

    with pytest.raises(ValueError, match="non-negative"):
        validate_rates(replace(DEFAULT_RATES, distribution_nt=-0.5))
    with pytest.raises(ValueError, match="at most 100"):
        validate_rates(replace(DEFAULT_RATES, vat_percent=120))


def test_save_and_get_rates(db_path, config_path):
    tariffs = load_rates_from_yaml(config_path)
    assert save_rates_to_db(tariffs, db_path) == 2

    stored = get_rates("flat", db_path)
    assert stored == tariffs[1]

    # Saving again replaces rather than duplicates
    save_rates_to_db([replace(tariffs[1], subscription_fee=300)], db_path)
    assert get_rates("flat", db_path).subscription_fee == 300


def test_get_rates_defaults_and_missing(db_path):
    assert get_rates(db_path=db_path) == DEFAULT_RATES
    with pytest.raises(ValueError, match="No tariff named"):
        get_rates("missing", db_path)
