"""Tests for annual aggregation and the kWh bank reset."""

from dataclasses import replace

import pytest
from solarbill.annual import calculate_annual, calculate_baseline, is_reset_month, rolling_window
from solarbill.calculator import ExportPolicy, calculate_month
from solarbill.models import MonthlyEnergyInput, TariffRates
from solarbill.tariffs import DEFAULT_RATES


def months_from(year: int, month: int, count: int, export_at: tuple[int, int] | None = None):
    """Months with 100 kWh VT import each and a large export in one month."""
    inputs = []
    for _ in range(count):
        export = 10_000.0 if (year, month) == export_at else 0.0
        inputs.append(
            MonthlyEnergyInput(
                year=year, month=month, vt=100, nt=0,
                import_vt=100, import_nt=0, export=export, self_consumption=0,
            )
        )
        month += 1
        if month > 12:
            month, year = 1, year + 1
    return inputs


def test_all_zero_year_bills_only_flat_fees():
    zero_months = [MonthlyEnergyInput(month=m, year=2024, vt=0, nt=0) for m in range(1, 13)]

    result = calculate_annual(zero_months, DEFAULT_RATES, approved_power=0, self_consumption_percent=70)
    assert result.total_annual_bill == 0
    for bill in result.months:
        assert bill.energy_total == 0
        assert bill.dist_cost_vt == 0
        assert bill.dist_cost_nt == 0
        assert bill.fee_oie_cost == 0

    flat = TariffRates(subscription_fee=150)
    result = calculate_annual(zero_months, flat, approved_power=0, self_consumption_percent=70)
    assert result.total_annual_bill == pytest.approx(150 * 12)
    assert result.average_monthly_bill == pytest.approx(150)


def test_surplus_resets_in_april():
    """A huge April export carries through the year but not past next April."""
    inputs = months_from(2024, 1, 24, export_at=(2024, 4))
    result = calculate_annual(inputs, DEFAULT_RATES, approved_power=10, self_consumption_percent=70)
    bills = result.months

    april, march_next, april_next = bills[3], bills[14], bills[15]
    assert (april.year, april.month) == (2024, 4)
    assert april.surplus_carried_in == 0
    assert april.surplus_remaining == pytest.approx(9900)

    assert (march_next.year, march_next.month) == (2025, 3)
    assert march_next.surplus_remaining == pytest.approx(8800)

    assert (april_next.year, april_next.month) == (2025, 4)
    assert april_next.surplus_carried_in == 0
    assert all(b.surplus_remaining == 0 for b in bills[15:])


def test_reset_keyed_on_month_in_rolling_window():
    inputs = months_from(2024, 7, 12, export_at=(2024, 8))
    result = calculate_annual(inputs, DEFAULT_RATES, approved_power=10, self_consumption_percent=70)
    bills = result.months

    # Index 3 is October here; the reset must wait for April (index 9)
    assert bills[3].month == 10
    assert bills[3].surplus_carried_in > 0
    assert bills[8].month == 3
    assert bills[8].surplus_carried_in > 0
    assert bills[9].month == 4
    assert bills[9].surplus_carried_in == 0
    assert result.final_surplus_kwh == 0


def test_no_credit_policy_accumulates_until_april():
    inputs = [
        replace(m, export=50.0)
        for m in months_from(2024, 1, 5)
    ]
    result = calculate_annual(inputs, DEFAULT_RATES, 10, 70, ExportPolicy.NO_CREDIT)
    bills = result.months

    assert bills[2].surplus_remaining == pytest.approx(150)
    assert bills[3].surplus_carried_in == 0
    assert bills[4].surplus_remaining == pytest.approx(100)
    assert result.total_solar_credit == 0


def test_annual_totals():
    inputs = [
        MonthlyEnergyInput(month=m, year=2024, vt=400, nt=200, solar_production=300)
        for m in range(1, 13)
    ]
    result = calculate_annual(inputs, DEFAULT_RATES, 10, 70)

    assert len(result.months) == 12
    assert result.total_consumption_vt == pytest.approx(4800)
    assert result.total_consumption_nt == pytest.approx(2400)
    assert result.total_solar_produced == pytest.approx(3600)
    assert result.total_solar_exported == pytest.approx(12 * 90)
    assert result.total_annual_bill == pytest.approx(sum(b.total_bill for b in result.months))
    assert result.total_solar_credit == pytest.approx(sum(b.solar_credit for b in result.months))
    assert result.average_monthly_bill == pytest.approx(result.total_annual_bill / 12)



def test_baseline_bills_same_months_without_solar():
    """The no-solar bill matches a plain grid-only bill for every month."""
    inputs = [
        MonthlyEnergyInput(month=m, year=2024, vt=400, nt=200, solar_production=300, max_power=9)
        for m in range(1, 13)
    ]
    with_solar = calculate_annual(inputs, DEFAULT_RATES, 10, 70)
    baseline = calculate_baseline(inputs, DEFAULT_RATES, 10)

    grid_only = calculate_month(
        MonthlyEnergyInput(month=1, year=2024, vt=400, nt=200, max_power=9), DEFAULT_RATES, 10, 0, 0
    )

    assert len(baseline.months) == 12
    assert baseline.total_solar_produced == 0
    assert baseline.total_solar_credit == 0
    assert baseline.months[0].total_bill == pytest.approx(grid_only.total_bill)
    for solar_bill, base_bill in zip(with_solar.months, baseline.months):
        assert base_bill.total_bill > solar_bill.total_bill

def test_empty_sequence():
    result = calculate_annual([], DEFAULT_RATES, 10, 70)
    assert result.months == []
    assert result.total_annual_bill == 0
    assert result.average_monthly_bill == 0


def test_is_reset_month():
    assert is_reset_month(MonthlyEnergyInput(month=4, vt=0, nt=0))
    assert not is_reset_month(MonthlyEnergyInput(month=3, vt=0, nt=0))


def test_rolling_window_takes_latest_months_in_order():
    inputs = months_from(2023, 1, 30)
    shuffled = inputs[::-1]

    window = rolling_window(shuffled)
    assert len(window) == 12
    assert (window[0].year, window[0].month) == (2024, 7)
    assert (window[-1].year, window[-1].month) == (2025, 6)
    assert rolling_window(inputs[:5]) == inputs[:5]
