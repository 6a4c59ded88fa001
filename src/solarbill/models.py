"""Data models for tariffs, monthly energy records and billing results."""

from dataclasses import dataclass, field
from datetime import datetime

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


@dataclass(frozen=True)
class TariffRates:
    """Price and percentage constants for one tariff (all prices in RSD)."""

    name: str = "default"
    active_energy_vt: float = 0.0  # RSD/kWh, high tariff
    active_energy_nt: float = 0.0  # RSD/kWh, low tariff
    approved_power_price: float = 0.0  # RSD/kW per month
    distribution_vt: float = 0.0
    distribution_nt: float = 0.0
    fee_oie: float = 0.0  # renewable-energy fee, RSD/kWh
    fee_efficiency: float = 0.0
    subscription_fee: float = 0.0  # flat, per month
    excise_tax_percent: float = 0.0
    vat_percent: float = 0.0
    reactive_energy_price: float = 0.0  # RSD/kVArh
    excess_reactive_energy_price: float = 0.0
    peak_excess_price: float = 0.0  # RSD/kW over approved power
    investment_cost: float = 0.0


@dataclass
class MonthlyEnergyInput:
    """One calendar month of energy flows for one installation.

    Explicit flows (import_vt, import_nt, export, self_consumption) are None
    when the data source did not measure them; the calculator estimates them.
    """

    month: int  # 1-12
    vt: float
    nt: float
    solar_production: float = 0.0
    max_power: float = 0.0
    year: int | None = None
    import_vt: float | None = None
    import_nt: float | None = None
    export: float | None = None
    self_consumption: float | None = None
    reactive_import_vt: float = 0.0
    reactive_import_nt: float = 0.0

    @property
    def label(self) -> str:
        name = MONTH_NAMES[(self.month - 1) % 12]
        return f"{name} {self.year}" if self.year else name


@dataclass(frozen=True)
class MonthlyBill:
    """Fully itemized bill for one month."""

    month: int
    year: int | None
    max_power: float

    # Physical flows
    gross_vt: float
    gross_nt: float
    solar_produced: float
    solar_direct_used: float
    solar_exported: float
    import_vt: float
    import_nt: float
    net_vt: float
    net_nt: float

    # kWh bank
    surplus_carried_in: float
    total_export_available: float
    recognized_export_kwh: float
    surplus_remaining: float
    solar_credit: float

    # Line items
    energy_cost_vt: float
    energy_cost_nt: float
    energy_total: float
    power_cost: float
    dist_cost_vt: float
    dist_cost_nt: float
    access_total: float
    fee_oie_cost: float
    fee_efficiency_cost: float
    fees_total: float

    # Reactive energy and maxigraf
    reactive_import_vt: float
    reactive_import_nt: float
    excess_reactive_vt: float
    excess_reactive_nt: float
    reactive_cost: float
    excess_reactive_cost: float
    peak_excess_kw: float
    peak_excess_cost: float

    # Tax cascade
    subtotal: float
    excise_base: float
    excise_amount: float
    vat_base: float
    vat_amount: float
    total_before_credit: float
    total_bill: float

    @property
    def label(self) -> str:
        name = MONTH_NAMES[(self.month - 1) % 12]
        return f"{name} {self.year}" if self.year else name


@dataclass
class AnnualResult:
    """Monthly bills for a sequence of months plus aggregate totals."""

    months: list[MonthlyBill]
    total_annual_bill: float
    total_consumption_vt: float
    total_consumption_nt: float
    total_solar_produced: float
    total_solar_exported: float
    total_solar_credit: float
    total_recognized_export_kwh: float
    final_surplus_kwh: float

    @property
    def average_monthly_bill(self) -> float:
        return self.total_annual_bill / len(self.months) if self.months else 0.0


@dataclass(frozen=True)
class CashFlowYear:
    """One year of the investment timeline (year 0 is the outlay)."""

    year: int
    energy_savings: float
    maintenance_cost: float
    net_cash_flow: float
    cumulative_cash_flow: float


@dataclass(frozen=True)
class IRRResult:
    """Outcome of the internal-rate-of-return root find."""

    rate: float | None  # fraction, e.g. 0.12 for 12 %
    converged: bool
    iterations: int


@dataclass
class InvestmentAnalysis:
    """Payback, ROI and IRR for a solar installation."""

    years: int
    total_investment: float
    annual_savings_basis: float
    payback_period: float  # 0 when not recovered within the horizon
    payback_reached: bool
    roi: float  # percent
    irr: float | None  # percent, None when the root find did not converge
    irr_converged: bool
    total_savings: float
    cash_flows: list[CashFlowYear] = field(default_factory=list)


@dataclass
class Installation:
    """A monitored solar installation (project)."""

    name: str
    approved_power_kw: float
    installed_kw: float = 0.0
    self_consumption_percent: float = 70.0
    id: int | None = None


@dataclass
class HourlyEnergyRow:
    """A single hourly production/consumption record."""

    start_time: datetime
    produced_kwh: float
    consumed_kwh: float
