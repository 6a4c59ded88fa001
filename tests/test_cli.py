"""Tests for the command-line interface."""

import pytest
from click.testing import CliRunner
from solarbill.cli import cli

MONTHS = ["year,month,vt,nt,max_power,solar_production"] + [
    f"2024,{m},{900 + m * 10},400,9,{300 + m * 40}" for m in range(1, 13)
]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def loaded_db(tmp_path, runner):
    db = tmp_path / "cli.db"
    csv_path = tmp_path / "months.csv"
    csv_path.write_text("\n".join(MONTHS) + "\n")

    result = runner.invoke(cli, ["--db-path", str(db), "db", "init"])
    assert result.exit_code == 0, result.output
    assert "Database initialized" in result.output

    result = runner.invoke(
        cli, ["--db-path", str(db), "installation", "add", "Plant A", "--approved-power", "10", "--installed-kw", "8"]
    )
    assert result.exit_code == 0, result.output

    result = runner.invoke(cli, ["--db-path", str(db), "import", "csv", "--installation", "Plant A", "--csv", str(csv_path)])
    assert result.exit_code == 0, result.output
    assert "Imported 12 months" in result.output
    return db


def test_db_stats(runner, loaded_db):
    result = runner.invoke(cli, ["--db-path", str(loaded_db), "db", "stats"])

    assert result.exit_code == 0, result.output
    assert "Monthly records" in result.output


def test_bill_annual(runner, loaded_db):
    result = runner.invoke(cli, ["--db-path", str(loaded_db), "bill", "annual", "--installation", "Plant A"])

    assert result.exit_code == 0, result.output
    assert "Billing Summary (12 months)" in result.output


def test_bill_annual_json(runner, loaded_db):
    result = runner.invoke(
        cli, ["--db-path", str(loaded_db), "bill", "annual", "--installation", "Plant A", "--no-credit", "--json"]
    )

    assert result.exit_code == 0, result.output
    assert '"solar_credit": 0.0' in result.output
    assert '"baseline_bill"' in result.output


def test_bill_month(runner, loaded_db):
    result = runner.invoke(
        cli, ["--db-path", str(loaded_db), "bill", "month", "--installation", "Plant A", "--year", "2024", "--month", "5"]
    )
    assert result.exit_code == 0, result.output
    assert "total" in result.output

    result = runner.invoke(
        cli, ["--db-path", str(loaded_db), "bill", "month", "--installation", "Plant A", "--year", "2025", "--month", "5"]
    )
    assert result.exit_code == 0
    assert "No data for 2025-05" in result.output


def test_bill_month_shows_savings(runner, loaded_db):
    result = runner.invoke(
        cli,
        ["--db-path", str(loaded_db), "bill", "month", "--installation", "Plant A", "--year", "2024", "--month", "6", "--json"],
    )

    assert result.exit_code == 0, result.output
    assert '"baseline_total"' in result.output
    assert '"savings"' in result.output


def test_invest(runner, loaded_db):
    result = runner.invoke(
        cli, ["--db-path", str(loaded_db), "invest", "--installation", "Plant A", "--year", "2024", "--investment", "1500000"]
    )

    assert result.exit_code == 0, result.output
    assert "Investment Analysis (20 years)" in result.output


def test_unknown_installation(runner, loaded_db):
    result = runner.invoke(cli, ["--db-path", str(loaded_db), "bill", "annual", "--installation", "Nope"])

    assert result.exit_code == 0
    assert "No installation named" in result.output


def test_tariff_show(runner, loaded_db):
    result = runner.invoke(cli, ["--db-path", str(loaded_db), "tariff", "show"])

    assert result.exit_code == 0, result.output
    assert "vat_percent" in result.output


def test_estimate(runner):
    result = runner.invoke(cli, ["estimate", "--installed-kw", "10", "--monthly-consumption", "1500"])

    assert result.exit_code == 0, result.output
    assert "Billing Summary" in result.output
    assert "Investment Analysis" in result.output


def test_import_csv_missing_column(runner, loaded_db, tmp_path):
    csv_path = tmp_path / "short.csv"
    csv_path.write_text("year,month,nt\n2024,1,5\n")

    result = runner.invoke(
        cli, ["--db-path", str(loaded_db), "import", "csv", "--installation", "Plant A", "--csv", str(csv_path)]
    )

    assert result.exception is None
    assert "Error:" in result.output
    assert "vt" in result.output


def test_db_init_reports_invalid_tariffs(runner, tmp_path, monkeypatch):
    config = tmp_path / "tariffs.yaml"
    config.write_text("tariffs:\n  - name: default\n    rates:\n      distribution_nt: -1\n")
    monkeypatch.setenv("SOLARBILL_TARIFFS", str(config))

    result = runner.invoke(cli, ["--db-path", str(tmp_path / "init.db"), "db", "init"])

    assert result.exception is None
    assert "Database initialized" in result.output
    assert "non-negative" in result.output


def test_import_hourly_rejects_bad_date(runner, loaded_db):
    result = runner.invoke(
        cli,
        ["--db-path", str(loaded_db), "import", "hourly", "--installation", "Plant A", "--from-date", "2024-13-45"],
    )

    assert result.exit_code == 2
    assert "Invalid value" in result.output
