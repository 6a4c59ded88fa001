"""Estimated solar production for what-if calculations."""

from .models import MonthlyEnergyInput

# Average monthly yield in Serbia, kWh per installed kWp (January first)
BASE_YIELD = [55, 75, 115, 145, 175, 195, 210, 190, 140, 95, 60, 45]

DEFAULT_VT_SHARE = 0.7


def estimate_production(installed_kw: float, month: int) -> float:
    """Expected production in kWh for a plant of `installed_kw` in `month` (1-12)."""
    return installed_kw * BASE_YIELD[(month - 1) % 12]


def build_estimated_inputs(
    installed_kw: float,
    monthly_consumption: float | list[float],
    vt_share: float = DEFAULT_VT_SHARE,
    year: int | None = None,
    start_month: int = 1,
    max_power: float = 0.0,
) -> list[MonthlyEnergyInput]:
    """Build twelve months of inputs from a consumption profile and plant size.

    `monthly_consumption` is either one figure used for every month or twelve
    figures in sequence order starting at `start_month`. Flows are left for
    the calculator to estimate.
    """
    if not 0 <= vt_share <= 1:
        raise ValueError(f"vt_share must be between 0 and 1, got {vt_share}")
    if isinstance(monthly_consumption, (int, float)):
        consumption = [float(monthly_consumption)] * 12
    else:
        consumption = list(monthly_consumption)
        if len(consumption) != 12:
            raise ValueError(f"Expected 12 monthly consumption figures, got {len(consumption)}")

    inputs = []
    for offset, total in enumerate(consumption):
        month = (start_month - 1 + offset) % 12 + 1
        month_year = year + (start_month - 1 + offset) // 12 if year else None
        inputs.append(
            MonthlyEnergyInput(
                month=month,
                year=month_year,
                vt=total * vt_share,
                nt=total * (1 - vt_share),
                solar_production=estimate_production(installed_kw, month),
                max_power=max_power,
            )
        )
    return inputs
