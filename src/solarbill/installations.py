"""Installations and their stored monthly energy records."""

import sqlite3
from pathlib import Path

from .calculator import validate_input
from .db import get_connection
from .models import Installation, MonthlyEnergyInput

MONTHLY_COLUMNS = [
    "vt",
    "nt",
    "max_power",
    "solar_production",
    "import_vt",
    "import_nt",
    "export",
    "self_consumption",
    "reactive_import_vt",
    "reactive_import_nt",
]


def add_installation(installation: Installation, db_path: Path | None = None) -> Installation:
    """Insert or update an installation by name. Returns it with its id set."""
    with get_connection(db_path) as conn:
        conn.execute(
            """INSERT INTO installations (name, approved_power_kw, installed_kw, self_consumption_percent)
               VALUES (?, ?, ?, ?)
               ON CONFLICT(name) DO UPDATE SET
                   approved_power_kw = excluded.approved_power_kw,
                   installed_kw = excluded.installed_kw,
                   self_consumption_percent = excluded.self_consumption_percent""",
            (
                installation.name,
                installation.approved_power_kw,
                installation.installed_kw,
                installation.self_consumption_percent,
            ),
        )
        conn.commit()
    return get_installation(installation.name, db_path)


def get_installation(name: str, db_path: Path | None = None) -> Installation:
    """Look up an installation by name."""
    with get_connection(db_path) as conn:
        row = conn.execute("SELECT * FROM installations WHERE name = ?", (name,)).fetchone()

    if not row:
        raise ValueError(f"No installation named '{name}'")

    return Installation(
        id=row["id"],
        name=row["name"],
        approved_power_kw=row["approved_power_kw"],
        installed_kw=row["installed_kw"],
        self_consumption_percent=row["self_consumption_percent"],
    )


def save_monthly_inputs(
    installation: Installation, inputs: list[MonthlyEnergyInput], db_path: Path | None = None
) -> dict:
    """Save monthly records for an installation.

    Records without a year cannot be stored. Returns dict with 'imported'
    and 'skipped' counts; existing (year, month) rows are skipped.
    """
    imported = 0
    skipped = 0

    with get_connection(db_path) as conn:
        for month_input in inputs:
            validate_input(month_input)
            if month_input.year is None:
                raise ValueError(f"{month_input.label}: year is required to store a record")

            try:
                conn.execute(
                    f"""INSERT INTO monthly_energy
                        (installation_id, year, month, {", ".join(MONTHLY_COLUMNS)})
                        VALUES (?, ?, ?, {", ".join("?" for _ in MONTHLY_COLUMNS)})""",
                    (
                        installation.id,
                        month_input.year,
                        month_input.month,
                        *(getattr(month_input, col) for col in MONTHLY_COLUMNS),
                    ),
                )
                imported += 1
            except sqlite3.IntegrityError:
                # Already have this month
                skipped += 1

        conn.commit()

    return {"imported": imported, "skipped": skipped}


def get_monthly_inputs(
    installation: Installation, year: int | None = None, db_path: Path | None = None
) -> list[MonthlyEnergyInput]:
    """Get stored monthly records in chronological order, optionally for one year."""
    query = "SELECT * FROM monthly_energy WHERE installation_id = ?"
    params: list = [installation.id]
    if year is not None:
        query += " AND year = ?"
        params.append(year)
    query += " ORDER BY year, month"

    with get_connection(db_path) as conn:
        rows = conn.execute(query, params).fetchall()

    return [
        MonthlyEnergyInput(
            year=row["year"],
            month=row["month"],
            **{col: row[col] for col in MONTHLY_COLUMNS},
        )
        for row in rows
    ]
