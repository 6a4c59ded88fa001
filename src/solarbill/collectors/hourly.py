"""Aggregate hourly production/consumption into monthly energy records."""

from collections.abc import Iterable
from datetime import datetime
from zoneinfo import ZoneInfo

from ..models import HourlyEnergyRow, MonthlyEnergyInput

# High tariff (VT) runs from 07:00 to 23:00
VT_START_HOUR = 7
VT_END_HOUR = 23

# Tariff periods and billing months follow Serbian local time
DEFAULT_TIMEZONE = "Europe/Belgrade"


def is_vt_hour(hour: int) -> bool:
    """Check if an hour of the day falls in the high tariff window."""
    return VT_START_HOUR <= hour < VT_END_HOUR


def to_local(timestamp: datetime, tz: ZoneInfo) -> datetime:
    """Convert an aware timestamp to local time, leaving naive ones unchanged."""
    if timestamp.tzinfo is None:
        return timestamp
    return timestamp.astimezone(tz)


def aggregate_monthly(rows: Iterable[HourlyEnergyRow], timezone: str = DEFAULT_TIMEZONE) -> list[MonthlyEnergyInput]:
    """Build monthly inputs with measured flows from hourly rows.

    During VT hours production covers consumption first and only the
    remainder is exported. Night production (rare) is exported in full and
    night consumption is imported in full.

    Timezone-aware timestamps (PostgREST returns UTC) are converted to local
    time before picking the tariff period and month; naive timestamps are
    taken as local already.
    """
    tz = ZoneInfo(timezone)
    months: dict[tuple[int, int], dict] = {}

    for row in rows:
        local = to_local(row.start_time, tz)
        key = (local.year, local.month)
        totals = months.setdefault(
            key,
            {"gen": 0.0, "vt": 0.0, "nt": 0.0, "self": 0.0, "ivt": 0.0, "int": 0.0, "exp": 0.0, "peak": 0.0},
        )
        produced = max(0.0, row.produced_kwh)
        consumed = max(0.0, row.consumed_kwh)

        totals["gen"] += produced
        # One hour of energy equals the average power over that hour
        totals["peak"] = max(totals["peak"], consumed)

        if is_vt_hour(local.hour):
            self_used = min(produced, consumed)
            totals["vt"] += consumed
            totals["self"] += self_used
            totals["ivt"] += consumed - self_used
            totals["exp"] += produced - self_used
        else:
            totals["nt"] += consumed
            totals["int"] += consumed
            totals["exp"] += produced

    return [
        MonthlyEnergyInput(
            year=year,
            month=month,
            vt=t["vt"],
            nt=t["nt"],
            max_power=t["peak"],
            solar_production=t["gen"],
            import_vt=t["ivt"],
            import_nt=t["int"],
            export=t["exp"],
            self_consumption=t["self"],
        )
        for (year, month), t in sorted(months.items())
    ]
