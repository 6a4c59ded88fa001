"""Summaries of billing and investment results for display or JSON output."""

from ..models import AnnualResult, InvestmentAnalysis, MonthlyBill


def _rsd(value: float) -> str:
    return f"{value:,.0f} RSD".replace(",", ".")


def monthly_bill_summary(bill: MonthlyBill, baseline: MonthlyBill | None = None) -> dict:
    """Itemized monthly bill rounded for display.

    With a baseline (the same month billed without solar) the summary also
    carries the bill without solar and the savings.
    """
    data = {
        "month": bill.month,
        "year": bill.year,
        "label": bill.label,
        "energy": {
            "gross_vt_kwh": round(bill.gross_vt, 2),
            "gross_nt_kwh": round(bill.gross_nt, 2),
            "import_vt_kwh": round(bill.import_vt, 2),
            "import_nt_kwh": round(bill.import_nt, 2),
            "net_vt_kwh": round(bill.net_vt, 2),
            "net_nt_kwh": round(bill.net_nt, 2),
            "solar_produced_kwh": round(bill.solar_produced, 2),
            "solar_direct_used_kwh": round(bill.solar_direct_used, 2),
            "solar_exported_kwh": round(bill.solar_exported, 2),
        },
        "kwh_bank": {
            "carried_in_kwh": round(bill.surplus_carried_in, 2),
            "available_kwh": round(bill.total_export_available, 2),
            "recognized_kwh": round(bill.recognized_export_kwh, 2),
            "remaining_kwh": round(bill.surplus_remaining, 2),
        },
        "costs": {
            "energy_vt": round(bill.energy_cost_vt, 2),
            "energy_nt": round(bill.energy_cost_nt, 2),
            "approved_power": round(bill.power_cost, 2),
            "distribution_vt": round(bill.dist_cost_vt, 2),
            "distribution_nt": round(bill.dist_cost_nt, 2),
            "fee_oie": round(bill.fee_oie_cost, 2),
            "fee_efficiency": round(bill.fee_efficiency_cost, 2),
            "fees_total": round(bill.fees_total, 2),
            "reactive": round(bill.reactive_cost, 2),
            "excess_reactive": round(bill.excess_reactive_cost, 2),
            "peak_excess": round(bill.peak_excess_cost, 2),
        },
        "subtotal": round(bill.subtotal, 2),
        "excise": round(bill.excise_amount, 2),
        "vat_base": round(bill.vat_base, 2),
        "vat": round(bill.vat_amount, 2),
        "total_before_credit": round(bill.total_before_credit, 2),
        "solar_credit": round(bill.solar_credit, 2),
        "total": round(bill.total_bill, 2),
    }
    if baseline is not None:
        data["baseline_total"] = round(baseline.total_bill, 2)
        data["savings"] = round(baseline.total_bill - bill.total_bill, 2)
    return data


def annual_summary(result: AnnualResult, baseline: AnnualResult | None = None) -> dict:
    """Totals plus a short per-month breakdown, with savings against a baseline if given."""
    data = {
        "months": len(result.months),
        "totals": {
            "bill": round(result.total_annual_bill, 2),
            "consumption_vt_kwh": round(result.total_consumption_vt, 2),
            "consumption_nt_kwh": round(result.total_consumption_nt, 2),
            "solar_produced_kwh": round(result.total_solar_produced, 2),
            "solar_exported_kwh": round(result.total_solar_exported, 2),
            "solar_credit": round(result.total_solar_credit, 2),
            "recognized_export_kwh": round(result.total_recognized_export_kwh, 2),
            "final_surplus_kwh": round(result.final_surplus_kwh, 2),
        },
        "average_monthly_bill": round(result.average_monthly_bill, 2),
        "monthly_breakdown": [
            {
                "label": b.label,
                "total": round(b.total_bill, 2),
                "solar_credit": round(b.solar_credit, 2),
                "surplus_remaining_kwh": round(b.surplus_remaining, 2),
            }
            for b in result.months
        ],
    }
    if baseline is not None:
        data["totals"]["baseline_bill"] = round(baseline.total_annual_bill, 2)
        data["totals"]["savings"] = round(baseline.total_annual_bill - result.total_annual_bill, 2)
        for month, bill, base in zip(data["monthly_breakdown"], result.months, baseline.months):
            month["baseline_total"] = round(base.total_bill, 2)
            month["savings"] = round(base.total_bill - bill.total_bill, 2)
    return data


def investment_summary(analysis: InvestmentAnalysis) -> dict:
    """KPIs and the cash flow table."""
    return {
        "years": analysis.years,
        "investment": round(analysis.total_investment, 2),
        "annual_savings": round(analysis.annual_savings_basis, 2),
        "payback_years": round(analysis.payback_period, 2) if analysis.payback_reached else None,
        "roi_percent": round(analysis.roi, 2),
        "irr_percent": round(analysis.irr, 2) if analysis.irr is not None else None,
        "total_savings": round(analysis.total_savings, 2),
        "cash_flows": [
            {
                "year": cf.year,
                "savings": round(cf.energy_savings, 2),
                "maintenance": round(cf.maintenance_cost, 2),
                "net": round(cf.net_cash_flow, 2),
                "cumulative": round(cf.cumulative_cash_flow, 2),
            }
            for cf in analysis.cash_flows
        ],
    }


def format_annual_summary_text(summary: dict) -> str:
    """Format an annual summary as human-readable text."""
    totals = summary["totals"]
    lines = [
        f"Billing Summary ({summary['months']} months)",
        f"- Total bill: {_rsd(totals['bill'])}",
        f"- Average monthly bill: {_rsd(summary['average_monthly_bill'])}",
        f"- Consumption: {totals['consumption_vt_kwh']} kWh VT, {totals['consumption_nt_kwh']} kWh NT",
    ]

    if "baseline_bill" in totals:
        lines.extend([
            f"- Without solar: {_rsd(totals['baseline_bill'])}",
            f"- Savings: {_rsd(totals['savings'])}",
        ])

    if totals["solar_produced_kwh"] > 0:
        lines.extend([
            f"- Solar produced: {totals['solar_produced_kwh']} kWh",
            f"- Solar exported: {totals['solar_exported_kwh']} kWh",
            f"- Solar credit: {_rsd(totals['solar_credit'])}",
            f"- Unused surplus: {totals['final_surplus_kwh']} kWh",
        ])
    else:
        lines.append("- Solar: No production")

    return "\n".join(lines)


def format_investment_summary_text(summary: dict) -> str:
    """Format an investment summary as human-readable text."""
    payback = summary["payback_years"]
    irr = summary["irr_percent"]
    lines = [
        f"Investment Analysis ({summary['years']} years)",
        f"- Investment: {_rsd(summary['investment'])}",
        f"- First-year savings: {_rsd(summary['annual_savings'])}",
        f"- Payback: {payback} years" if payback is not None else "- Payback: not reached",
        f"- ROI: {summary['roi_percent']}%",
        f"- IRR: {irr}%" if irr is not None else "- IRR: did not converge",
        f"- Total savings: {_rsd(summary['total_savings'])}",
    ]
    return "\n".join(lines)
