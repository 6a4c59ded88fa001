"""Monthly bill calculation for prosumers on the Serbian two-tariff system.

The calculator is a pure function of its arguments. The only state that
links consecutive months, the kWh bank surplus, is passed in explicitly and
returned on the bill for the caller to thread into the next month.
"""

from enum import Enum

from .models import MonthlyBill, MonthlyEnergyInput, TariffRates

# Allowed reactive energy per kWh of active energy, tan(acos(0.95))
REACTIVE_ALLOWANCE_FACTOR = 0.32868

# Exported kWh are credited at 90% of the VT active energy price
SOLAR_CREDIT_FACTOR = 0.9


class ExportPolicy(str, Enum):
    """How exported energy is recognized against the bill."""

    OFFSET = "offset"  # credit up to the month's VT grid import
    NO_CREDIT = "no_credit"  # nothing recognized, everything carries over


def validate_input(month_input: MonthlyEnergyInput) -> MonthlyEnergyInput:
    """Reject records a data source should never hand to the calculator."""
    if not 1 <= month_input.month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month_input.month}")

    volumes = {
        "vt": month_input.vt,
        "nt": month_input.nt,
        "solar_production": month_input.solar_production,
        "max_power": month_input.max_power,
        "import_vt": month_input.import_vt,
        "import_nt": month_input.import_nt,
        "export": month_input.export,
        "self_consumption": month_input.self_consumption,
        "reactive_import_vt": month_input.reactive_import_vt,
        "reactive_import_nt": month_input.reactive_import_nt,
    }
    for name, value in volumes.items():
        if value is not None and value < 0:
            raise ValueError(f"{month_input.label}: {name} must be non-negative, got {value}")
    return month_input


def calculate_month(
    month_input: MonthlyEnergyInput,
    rates: TariffRates,
    approved_power: float,
    prev_surplus: float,
    self_consumption_percent: float,
    export_policy: ExportPolicy = ExportPolicy.OFFSET,
) -> MonthlyBill:
    """Calculate the itemized bill for one month.

    Steps:
    1. Resolve grid import, export and direct solar use. Measured values are
       used when present, otherwise they are estimated from gross consumption
       and the assumed self-consumption share of production.
    2. Add this month's export to the carried-over surplus and recognize up to
       the VT grid import (OFFSET policy). The rest carries forward.
    3. Energy supply is billed on gross import; distribution and fees on net.
    4. Reactive energy over the cos phi 0.95 allowance and power over the
       approved power are penalized.
    5. Excise applies to energy, access and fees only; VAT applies to the
       subtotal plus excise. The solar credit is deducted last and the total
       never goes below zero.
    """
    solar = month_input.solar_production
    self_used_estimate = solar * self_consumption_percent / 100

    import_vt = (
        month_input.import_vt
        if month_input.import_vt is not None
        else max(0.0, month_input.vt - self_used_estimate)
    )
    import_nt = month_input.import_nt if month_input.import_nt is not None else month_input.nt
    exported = (
        month_input.export if month_input.export is not None else max(0.0, solar - self_used_estimate)
    )
    direct_used = (
        month_input.self_consumption
        if month_input.self_consumption is not None
        else min(solar, month_input.vt)
    )

    # kWh bank
    total_export_available = exported + prev_surplus
    if export_policy == ExportPolicy.OFFSET:
        recognized = max(0.0, min(total_export_available, import_vt))
    else:
        recognized = 0.0
    surplus_remaining = total_export_available - recognized

    net_vt = max(0.0, import_vt - recognized)
    net_nt = import_nt

    # Energy supply
    energy_cost_vt = import_vt * rates.active_energy_vt
    energy_cost_nt = import_nt * rates.active_energy_nt
    energy_total = energy_cost_vt + energy_cost_nt

    solar_credit = recognized * rates.active_energy_vt * SOLAR_CREDIT_FACTOR

    # Network access
    power_cost = approved_power * rates.approved_power_price
    dist_cost_vt = net_vt * rates.distribution_vt
    dist_cost_nt = net_nt * rates.distribution_nt
    access_total = power_cost + dist_cost_vt + dist_cost_nt

    # Fees
    fee_kwh = net_vt + net_nt
    fee_oie_cost = fee_kwh * rates.fee_oie
    fee_efficiency_cost = fee_kwh * rates.fee_efficiency
    fees_total = fee_oie_cost + fee_efficiency_cost + rates.subscription_fee

    # Reactive energy, allowance based on net active energy
    reactive_vt = month_input.reactive_import_vt or 0.0
    reactive_nt = month_input.reactive_import_nt or 0.0
    excess_reactive_vt = max(0.0, reactive_vt - net_vt * REACTIVE_ALLOWANCE_FACTOR)
    excess_reactive_nt = max(0.0, reactive_nt - net_nt * REACTIVE_ALLOWANCE_FACTOR)
    reactive_cost = (reactive_vt + reactive_nt) * rates.reactive_energy_price
    excess_reactive_cost = (excess_reactive_vt + excess_reactive_nt) * rates.excess_reactive_energy_price

    # Maxigraf
    peak_excess_kw = max(0.0, (month_input.max_power or 0.0) - approved_power)
    peak_excess_cost = peak_excess_kw * rates.peak_excess_price

    # Tax cascade
    subtotal = (
        energy_total + access_total + fees_total
        + reactive_cost + excess_reactive_cost + peak_excess_cost
    )
    excise_base = energy_total + access_total + fees_total
    excise_amount = excise_base * rates.excise_tax_percent / 100
    vat_base = subtotal + excise_amount
    vat_amount = vat_base * rates.vat_percent / 100
    total_before_credit = vat_base + vat_amount
    total_bill = max(0.0, total_before_credit - solar_credit)

    return MonthlyBill(
        month=month_input.month,
        year=month_input.year,
        max_power=month_input.max_power,
        gross_vt=month_input.vt,
        gross_nt=month_input.nt,
        solar_produced=solar,
        solar_direct_used=direct_used,
        solar_exported=exported,
        import_vt=import_vt,
        import_nt=import_nt,
        net_vt=net_vt,
        net_nt=net_nt,
        surplus_carried_in=prev_surplus,
        total_export_available=total_export_available,
        recognized_export_kwh=recognized,
        surplus_remaining=surplus_remaining,
        solar_credit=solar_credit,
        energy_cost_vt=energy_cost_vt,
        energy_cost_nt=energy_cost_nt,
        energy_total=energy_total,
        power_cost=power_cost,
        dist_cost_vt=dist_cost_vt,
        dist_cost_nt=dist_cost_nt,
        access_total=access_total,
        fee_oie_cost=fee_oie_cost,
        fee_efficiency_cost=fee_efficiency_cost,
        fees_total=fees_total,
        reactive_import_vt=reactive_vt,
        reactive_import_nt=reactive_nt,
        excess_reactive_vt=excess_reactive_vt,
        excess_reactive_nt=excess_reactive_nt,
        reactive_cost=reactive_cost,
        excess_reactive_cost=excess_reactive_cost,
        peak_excess_kw=peak_excess_kw,
        peak_excess_cost=peak_excess_cost,
        subtotal=subtotal,
        excise_base=excise_base,
        excise_amount=excise_amount,
        vat_base=vat_base,
        vat_amount=vat_amount,
        total_before_credit=total_before_credit,
        total_bill=total_bill,
    )
