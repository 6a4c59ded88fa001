"""Hourly statistics fetched from a PostgREST (Supabase) endpoint.

Expects an `hourly_stats` table with project_id, start_time,
total_energy_produced and total_energy_consumed columns.

Requires SOLARBILL_API_URL and optionally SOLARBILL_API_KEY environment
variables unless the values are passed in.
"""

import os
from datetime import datetime

import httpx
from dotenv import load_dotenv

from ..models import HourlyEnergyRow

load_dotenv()

TABLE_PATH = "/rest/v1/hourly_stats"
DEFAULT_TIMEOUT = 30.0


class HourlyStatsError(Exception):
    """Raised when hourly statistics cannot be fetched."""


def get_config(base_url: str | None = None, api_key: str | None = None) -> tuple[str, str | None]:
    """Resolve the endpoint URL and API key from arguments or environment."""
    url = base_url or os.environ.get("SOLARBILL_API_URL")
    if not url:
        raise HourlyStatsError("SOLARBILL_API_URL environment variable not set")
    return url.rstrip("/"), api_key or os.environ.get("SOLARBILL_API_KEY")


def parse_rows(data: list[dict]) -> list[HourlyEnergyRow]:
    """Parse hourly_stats JSON rows, treating missing energy as zero."""
    rows = []
    for item in data:
        if not item.get("start_time"):
            continue
        rows.append(
            HourlyEnergyRow(
                start_time=datetime.fromisoformat(item["start_time"].replace("Z", "+00:00")),
                produced_kwh=float(item.get("total_energy_produced") or 0),
                consumed_kwh=float(item.get("total_energy_consumed") or 0),
            )
        )
    return rows


def fetch_hourly_rows(
    installation_id: str,
    start: datetime,
    end: datetime,
    base_url: str | None = None,
    api_key: str | None = None,
    client: httpx.Client | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[HourlyEnergyRow]:
    """Fetch hourly rows for an installation between start and end (inclusive).

    Args:
        installation_id: project_id in the hourly_stats table
        start: First hour to include
        end: Last hour to include
        base_url: Service URL, defaults to SOLARBILL_API_URL
        api_key: Service key, defaults to SOLARBILL_API_KEY
        client: Existing httpx client to use; one is created if omitted
        timeout: Request timeout in seconds for a created client

    Returns:
        Rows ordered by start time
    """
    url, key = get_config(base_url, api_key)
    headers = {"Accept": "application/json"}
    if key:
        headers["apikey"] = key
        headers["Authorization"] = f"Bearer {key}"

    params = [
        ("select", "start_time,total_energy_produced,total_energy_consumed"),
        ("project_id", f"eq.{installation_id}"),
        ("start_time", f"gte.{start.isoformat()}"),
        ("start_time", f"lte.{end.isoformat()}"),
        ("order", "start_time.asc"),
    ]

    owns_client = client is None
    http = client or httpx.Client(timeout=timeout)
    try:
        response = http.get(f"{url}{TABLE_PATH}", params=params, headers=headers)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        raise HourlyStatsError(f"HTTP error from hourly stats service: {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise HourlyStatsError(f"Network error fetching hourly stats: {e}") from e
    finally:
        if owns_client:
            http.close()

    if not isinstance(data, list):
        raise HourlyStatsError(f"Unexpected response from hourly stats service: {data}")
    return parse_rows(data)
