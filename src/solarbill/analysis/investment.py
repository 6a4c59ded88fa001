"""Investment analysis: cash flows, payback, ROI and IRR."""

import logging
from collections.abc import Sequence

from ..annual import calculate_baseline
from ..calculator import ExportPolicy
from ..models import (
    AnnualResult,
    CashFlowYear,
    InvestmentAnalysis,
    IRRResult,
    MonthlyEnergyInput,
    TariffRates,
)

logger = logging.getLogger(__name__)

DEFAULT_INFLATION_PERCENT = 3.0
DEFAULT_YEARS = 20

# Maintenance starts in year 3 at 0.5% of the investment per year
MAINTENANCE_START_YEAR = 3
MAINTENANCE_RATE = 0.005

IRR_GUESS = 0.1
IRR_MAX_ITERATIONS = 1000
IRR_PRECISION = 1e-7


def npv(rate: float, cash_flows: Sequence[float]) -> float:
    """Net present value of cash flows, the first one at year 0."""
    return sum(value / (1 + rate) ** i for i, value in enumerate(cash_flows))


def _has_sign_change(cash_flows: Sequence[float]) -> bool:
    signs = {value > 0 for value in cash_flows if value != 0}
    return len(signs) == 2


def calculate_irr(
    cash_flows: Sequence[float],
    guess: float = IRR_GUESS,
    max_iterations: int = IRR_MAX_ITERATIONS,
    precision: float = IRR_PRECISION,
) -> IRRResult:
    """Find the internal rate of return with Newton-Raphson.

    The result is marked as not converged when the series has no sign
    change, the derivative vanishes, the rate falls to -100% or below, the
    arithmetic overflows, or the iteration limit is reached.
    """
    if not _has_sign_change(cash_flows):
        logger.warning("IRR undefined: cash flows have no sign change")
        return IRRResult(rate=None, converged=False, iterations=0)

    rate = guess
    iteration = 0
    for iteration in range(1, max_iterations + 1):
        if rate <= -1:
            break
        try:
            value = 0.0
            derivative = 0.0
            for i, flow in enumerate(cash_flows):
                value += flow / (1 + rate) ** i
                derivative -= i * flow / (1 + rate) ** (i + 1)
        except (OverflowError, ZeroDivisionError):
            break

        if derivative == 0:
            break

        new_rate = rate - value / derivative
        if abs(new_rate - rate) < precision:
            return IRRResult(rate=new_rate, converged=True, iterations=iteration)
        rate = new_rate

    logger.warning("IRR did not converge (last guess %s)", rate)
    return IRRResult(rate=None, converged=False, iterations=iteration)


def build_cash_flows(
    annual_savings: float,
    investment_cost: float,
    inflation_rate_percent: float = DEFAULT_INFLATION_PERCENT,
    years: int = DEFAULT_YEARS,
) -> list[CashFlowYear]:
    """Year 0 outlay followed by inflation-adjusted yearly savings."""
    cumulative = -investment_cost
    cash_flows = [CashFlowYear(0, 0.0, 0.0, -investment_cost, cumulative)]
    inflation = 1 + inflation_rate_percent / 100

    for year in range(1, years + 1):
        savings = annual_savings * inflation ** (year - 1)
        maintenance = investment_cost * MAINTENANCE_RATE if year >= MAINTENANCE_START_YEAR else 0.0
        net_flow = savings - maintenance
        cumulative += net_flow
        cash_flows.append(CashFlowYear(year, savings, maintenance, net_flow, cumulative))

    return cash_flows


def payback_period(cash_flows: Sequence[CashFlowYear]) -> float | None:
    """Fractional years until the cumulative cash flow turns non-negative.

    Returns None when the investment is not recovered.
    """
    if not cash_flows:
        return None
    if cash_flows[0].cumulative_cash_flow >= 0:
        return 0.0

    for prev, current in zip(cash_flows, cash_flows[1:]):
        if current.cumulative_cash_flow >= 0:
            return (current.year - 1) + abs(prev.cumulative_cash_flow) / current.net_cash_flow
    return None


def calculate_investment_analysis(
    annual_with_solar: AnnualResult,
    inputs: Sequence[MonthlyEnergyInput],
    rates: TariffRates,
    approved_power: float,
    investment_cost: float,
    inflation_rate_percent: float = DEFAULT_INFLATION_PERCENT,
    years: int = DEFAULT_YEARS,
    export_policy: ExportPolicy = ExportPolicy.OFFSET,
) -> InvestmentAnalysis:
    """Compare the solar bill with a no-solar baseline over `years` years."""
    baseline = calculate_baseline(inputs, rates, approved_power, export_policy)
    annual_savings = baseline.total_annual_bill - annual_with_solar.total_annual_bill

    cash_flows = build_cash_flows(annual_savings, investment_cost, inflation_rate_percent, years)
    payback = payback_period(cash_flows)

    total_savings = sum(cf.net_cash_flow for cf in cash_flows if cf.year > 0)
    if investment_cost:
        roi = (total_savings - investment_cost) / investment_cost * 100
    else:
        roi = 0.0

    irr = calculate_irr([cf.net_cash_flow for cf in cash_flows])

    return InvestmentAnalysis(
        years=years,
        total_investment=investment_cost,
        annual_savings_basis=annual_savings,
        payback_period=payback if payback is not None else 0.0,
        payback_reached=payback is not None,
        roi=roi,
        irr=irr.rate * 100 if irr.converged else None,
        irr_converged=irr.converged,
        total_savings=total_savings,
        cash_flows=cash_flows,
    )
