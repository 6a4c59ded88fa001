"""Tests for result summaries and production estimates."""

import json

import pytest
from solarbill.analysis import summary
from solarbill.analysis.investment import calculate_investment_analysis
from solarbill.annual import baseline_inputs, calculate_annual, calculate_baseline
from solarbill.calculator import calculate_month
from solarbill.models import MonthlyEnergyInput
from solarbill.production import BASE_YIELD, build_estimated_inputs, estimate_production
from solarbill.tariffs import DEFAULT_RATES


def test_monthly_bill_summary():
    bill = calculate_month(
        MonthlyEnergyInput(month=1, year=2025, vt=500, nt=300, solar_production=400, max_power=9),
        DEFAULT_RATES, 10, 0, 70,
    )
    data = summary.monthly_bill_summary(bill)

    assert data["label"] == "January 2025"
    assert data["total"] == 6220.85
    assert data["solar_credit"] == 1356.48
    assert data["kwh_bank"]["recognized_kwh"] == 120
    json.dumps(data)


def test_annual_summary_text():
    inputs = build_estimated_inputs(5, 800, year=2024)
    result = calculate_annual(inputs, DEFAULT_RATES, 10, 70)
    data = summary.annual_summary(result)

    assert data["months"] == 12
    assert len(data["monthly_breakdown"]) == 12
    assert data["monthly_breakdown"][3]["label"] == "April 2024"

    text = summary.format_annual_summary_text(data)
    assert text.startswith("Billing Summary (12 months)")
    assert "Solar produced: " in text


def test_annual_summary_text_without_solar():
    inputs = [MonthlyEnergyInput(month=m, vt=100, nt=50) for m in range(1, 4)]
    data = summary.annual_summary(calculate_annual(inputs, DEFAULT_RATES, 10, 70))

    assert "Solar: No production" in summary.format_annual_summary_text(data)


def test_monthly_bill_summary_with_baseline():
    month = MonthlyEnergyInput(month=1, year=2025, vt=500, nt=300, solar_production=400, max_power=9)
    bill = calculate_month(month, DEFAULT_RATES, 10, 0, 70)
    baseline = calculate_month(baseline_inputs([month])[0], DEFAULT_RATES, 10, 0, 0)

    data = summary.monthly_bill_summary(bill, baseline)

    assert data["total"] == 6220.85
    assert data["baseline_total"] == round(baseline.total_bill, 2)
    assert data["savings"] == pytest.approx(data["baseline_total"] - data["total"], abs=0.01)
    assert data["savings"] > 0
    assert "savings" not in summary.monthly_bill_summary(bill)


def test_annual_summary_with_baseline():
    inputs = build_estimated_inputs(5, 800, year=2024)
    result = calculate_annual(inputs, DEFAULT_RATES, 10, 70)
    baseline = calculate_baseline(inputs, DEFAULT_RATES, 10)

    data = summary.annual_summary(result, baseline)

    totals = data["totals"]
    assert totals["baseline_bill"] == round(baseline.total_annual_bill, 2)
    assert totals["savings"] == pytest.approx(totals["baseline_bill"] - totals["bill"], abs=0.01)
    assert totals["savings"] > 0
    june = data["monthly_breakdown"][5]
    assert june["savings"] == pytest.approx(june["baseline_total"] - june["total"], abs=0.01)

    text = summary.format_annual_summary_text(data)
    assert "- Without solar: " in text
    assert "- Savings: " in text
    assert "Without solar" not in summary.format_annual_summary_text(summary.annual_summary(result))


def test_investment_summary_text():
    inputs = build_estimated_inputs(10, 1500, year=2024)
    result = calculate_annual(inputs, DEFAULT_RATES, 10, 70)

    reached = calculate_investment_analysis(result, inputs, DEFAULT_RATES, 10, 1_000_000)
    data = summary.investment_summary(reached)
    assert len(data["cash_flows"]) == 21
    assert data["payback_years"] == round(reached.payback_period, 2)
    assert "Payback: " in summary.format_investment_summary_text(data)

    never = calculate_investment_analysis(result, inputs, DEFAULT_RATES, 10, 500_000_000)
    text = summary.format_investment_summary_text(summary.investment_summary(never))
    assert "Payback: not reached" in text
    assert "Investment: 500.000.000 RSD" in text


def test_estimate_production():
    assert estimate_production(10, 1) == 10 * BASE_YIELD[0]
    assert estimate_production(2.5, 7) == pytest.approx(2.5 * 210)


def test_build_estimated_inputs_rolls_over_year():
    inputs = build_estimated_inputs(4, 1000, vt_share=0.6, year=2024, start_month=10)

    assert [m.month for m in inputs[:4]] == [10, 11, 12, 1]
    assert [m.year for m in inputs[:4]] == [2024, 2024, 2024, 2025]
    assert inputs[0].vt == pytest.approx(600)
    assert inputs[0].nt == pytest.approx(400)
    assert inputs[3].solar_production == pytest.approx(4 * 55)
    assert inputs[0].import_vt is None


def test_build_estimated_inputs_validation():
    with pytest.raises(ValueError, match="12 monthly"):
        build_estimated_inputs(4, [100, 200])
    with pytest.raises(ValueError, match="vt_share"):
        build_estimated_inputs(4, 100, vt_share=1.5)
