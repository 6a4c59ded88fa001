"""Annual aggregation of monthly bills with kWh bank carry-over."""

from collections.abc import Sequence
from dataclasses import replace

from .calculator import ExportPolicy, calculate_month
from .models import AnnualResult, MonthlyEnergyInput, TariffRates
from .tariffs import DEFAULT_RATES

# Unused export credit expires at the start of the prosumer year in April
RESET_MONTH = 4


def is_reset_month(month_input: MonthlyEnergyInput) -> bool:
    """Check whether the kWh bank resets before billing this month."""
    return month_input.month == RESET_MONTH


def calculate_annual(
    inputs: Sequence[MonthlyEnergyInput],
    rates: TariffRates = DEFAULT_RATES,
    approved_power: float = 0.0,
    self_consumption_percent: float = 0.0,
    export_policy: ExportPolicy = ExportPolicy.OFFSET,
) -> AnnualResult:
    """Bill each month in order, threading the export surplus between them.

    The sequence may start in any month and have any length; the surplus is
    zeroed whenever an April record is reached.
    """
    bills = []
    surplus = 0.0

    for month_input in inputs:
        if is_reset_month(month_input):
            surplus = 0.0

        bill = calculate_month(
            month_input, rates, approved_power, surplus, self_consumption_percent, export_policy
        )
        bills.append(bill)
        surplus = bill.surplus_remaining

    return AnnualResult(
        months=bills,
        total_annual_bill=sum(b.total_bill for b in bills),
        total_consumption_vt=sum(b.gross_vt for b in bills),
        total_consumption_nt=sum(b.gross_nt for b in bills),
        total_solar_produced=sum(b.solar_produced for b in bills),
        total_solar_exported=sum(b.solar_exported for b in bills),
        total_solar_credit=sum(b.solar_credit for b in bills),
        total_recognized_export_kwh=sum(b.recognized_export_kwh for b in bills),
        final_surplus_kwh=surplus,
    )


def rolling_window(inputs: Sequence[MonthlyEnergyInput], count: int = 12) -> list[MonthlyEnergyInput]:
    """Return the most recent `count` months in chronological order."""
    ordered = sorted(inputs, key=lambda m: (m.year or 0, m.month))
    return ordered[-count:] if count > 0 else []


def baseline_inputs(inputs: Sequence[MonthlyEnergyInput]) -> list[MonthlyEnergyInput]:
    """The same months as if no solar plant were installed."""
    return [
        replace(
            m,
            solar_production=0.0,
            import_vt=m.vt,
            import_nt=m.nt,
            export=0.0,
            self_consumption=0.0,
        )
        for m in inputs
    ]


def calculate_baseline(
    inputs: Sequence[MonthlyEnergyInput],
    rates: TariffRates = DEFAULT_RATES,
    approved_power: float = 0.0,
    export_policy: ExportPolicy = ExportPolicy.OFFSET,
) -> AnnualResult:
    """Bill the same months with all consumption drawn from the grid."""
    return calculate_annual(baseline_inputs(inputs), rates, approved_power, 0.0, export_policy)
