"""Monthly energy record importer.

Imports meter/inverter monthly totals from CSV.
CSV format: year, month, vt, nt, max_power, solar_production and optionally
import_vt, import_nt, export, self_consumption, reactive_import_vt,
reactive_import_nt. Empty optional cells mean "not measured".
"""

import csv
from pathlib import Path

from ..calculator import validate_input
from ..installations import save_monthly_inputs
from ..models import Installation, MonthlyEnergyInput

# English and Serbian (Latin) names and abbreviations
MONTH_ALIASES = {
    1: ("january", "januar", "jan"),
    2: ("february", "februar", "feb"),
    3: ("march", "mart", "mar"),
    4: ("april", "apr"),
    5: ("may", "maj"),
    6: ("june", "jun"),
    7: ("july", "jul"),
    8: ("august", "avgust", "aug", "avg"),
    9: ("september", "septembar", "sep", "sept"),
    10: ("october", "oktobar", "oct", "okt"),
    11: ("november", "novembar", "nov"),
    12: ("december", "decembar", "dec"),
}

_MONTH_LOOKUP = {alias: number for number, aliases in MONTH_ALIASES.items() for alias in aliases}

REQUIRED_COLUMNS = ["month", "vt", "nt"]

OPTIONAL_FLOWS = ["import_vt", "import_nt", "export", "self_consumption"]


def parse_month(value: str) -> int:
    """Parse a month number or name ("4", "April", "Apr", "Avgust")."""
    text = value.strip().lower()
    if text.isdigit():
        month = int(text)
        if 1 <= month <= 12:
            return month
    elif text in _MONTH_LOOKUP:
        return _MONTH_LOOKUP[text]
    raise ValueError(f"Unrecognized month: {value!r}")


def _optional(row: dict, key: str) -> float | None:
    value = (row.get(key) or "").strip()
    return float(value) if value else None


def _required(row: dict, key: str) -> str:
    value = (row.get(key) or "").strip()
    if not value:
        raise ValueError(f"Missing value for {key}")
    return value


def parse_row(row: dict) -> MonthlyEnergyInput:
    """Convert one CSV row into a validated monthly input."""
    year = (row.get("year") or "").strip()
    month_input = MonthlyEnergyInput(
        year=int(year) if year else None,
        month=parse_month(_required(row, "month")),
        vt=float(_required(row, "vt")),
        nt=float(_required(row, "nt")),
        max_power=_optional(row, "max_power") or 0.0,
        solar_production=_optional(row, "solar_production") or 0.0,
        reactive_import_vt=_optional(row, "reactive_import_vt") or 0.0,
        reactive_import_nt=_optional(row, "reactive_import_nt") or 0.0,
        **{key: _optional(row, key) for key in OPTIONAL_FLOWS},
    )
    return validate_input(month_input)


def parse_csv(csv_path: Path) -> list[MonthlyEnergyInput]:
    """Parse a monthly energy CSV file."""
    with open(csv_path, newline="") as f:
        reader = csv.DictReader(f)
        missing = [column for column in REQUIRED_COLUMNS if column not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"{csv_path.name}: missing required column(s): {', '.join(missing)}")
        return [parse_row(row) for row in reader]


def import_from_csv(csv_path: Path, installation: Installation, db_path: Path | None = None) -> dict:
    """Import monthly records for an installation from CSV.

    Returns dict with 'imported' and 'skipped' counts.
    """
    inputs = parse_csv(csv_path)
    return save_monthly_inputs(installation, inputs, db_path)
