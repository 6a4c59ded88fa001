"""Database connection and schema management."""

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DB_PATH = Path.home() / ".local" / "share" / "solar-bill" / "solarbill.db"

SCHEMA = """
-- Monitored installations (projects)
CREATE TABLE IF NOT EXISTS installations (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    approved_power_kw REAL NOT NULL,
    installed_kw REAL DEFAULT 0,
    self_consumption_percent REAL DEFAULT 70
);

-- Monthly energy flows, one row per installation and calendar month
CREATE TABLE IF NOT EXISTS monthly_energy (
    id INTEGER PRIMARY KEY,
    installation_id INTEGER NOT NULL,
    year INTEGER NOT NULL,
    month INTEGER NOT NULL,
    vt REAL NOT NULL,
    nt REAL NOT NULL,
    max_power REAL DEFAULT 0,
    solar_production REAL DEFAULT 0,
    import_vt REAL,
    import_nt REAL,
    export REAL,
    self_consumption REAL,
    reactive_import_vt REAL DEFAULT 0,
    reactive_import_nt REAL DEFAULT 0,
    UNIQUE(installation_id, year, month),
    FOREIGN KEY (installation_id) REFERENCES installations(id)
);

-- Tariff rate sets, stored as key/value pairs per tariff name
CREATE TABLE IF NOT EXISTS tariff_rates (
    id INTEGER PRIMARY KEY,
    tariff_name TEXT NOT NULL,
    key TEXT NOT NULL,
    value REAL NOT NULL,
    UNIQUE(tariff_name, key)
);

CREATE INDEX IF NOT EXISTS idx_monthly_period ON monthly_energy(installation_id, year, month);
"""


def get_db_path() -> Path:
    """Get the database path, creating parent directories if needed."""
    db_path = Path(os.environ.get("SOLARBILL_DB_PATH") or DEFAULT_DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path


@contextmanager
def get_connection(db_path: Path | None = None) -> Iterator[sqlite3.Connection]:
    """Get a database connection with row factory enabled."""
    path = db_path or get_db_path()
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: Path | None = None) -> None:
    """Initialize the database schema."""
    with get_connection(db_path) as conn:
        conn.executescript(SCHEMA)
        conn.commit()


def get_stats(db_path: Path | None = None) -> dict:
    """Get database statistics."""
    with get_connection(db_path) as conn:
        stats = {}

        row = conn.execute("SELECT COUNT(*) as count FROM installations").fetchone()
        stats["installations"] = {"count": row["count"]}

        row = conn.execute(
            """SELECT COUNT(*) as count,
                      MIN(year * 100 + month) as earliest,
                      MAX(year * 100 + month) as latest
               FROM monthly_energy"""
        ).fetchone()
        stats["monthly_energy"] = {
            "count": row["count"],
            "earliest": _format_period(row["earliest"]),
            "latest": _format_period(row["latest"]),
        }

        rows = conn.execute(
            """SELECT i.name, COUNT(m.id) as count
               FROM installations i LEFT JOIN monthly_energy m ON m.installation_id = i.id
               GROUP BY i.id ORDER BY i.name"""
        ).fetchall()
        stats["monthly_by_installation"] = {row["name"]: row["count"] for row in rows}

        row = conn.execute("SELECT COUNT(DISTINCT tariff_name) as count FROM tariff_rates").fetchone()
        stats["tariffs"] = {"count": row["count"]}

        return stats


def _format_period(value: int | None) -> str | None:
    if value is None:
        return None
    return f"{value // 100}-{value % 100:02d}"
