"""Command-line interface for solar billing and investment analysis."""

import json
import logging
from datetime import datetime, timedelta
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from . import db
from .analysis import summary
from .analysis.investment import (
    DEFAULT_INFLATION_PERCENT,
    DEFAULT_YEARS,
    calculate_investment_analysis,
)
from .annual import baseline_inputs, calculate_annual, calculate_baseline, is_reset_month, rolling_window
from .calculator import ExportPolicy, calculate_month
from .collectors import hourly, hourly_stats, monthly_csv
from .installations import (
    add_installation,
    get_installation,
    get_monthly_inputs,
    save_monthly_inputs,
)
from .models import Installation
from .production import DEFAULT_VT_SHARE, build_estimated_inputs
from .tariffs import DEFAULT_RATES, RATE_KEYS, get_rates, load_rates_from_yaml, save_rates_to_db

console = Console()


@click.group()
@click.option("--db-path", type=click.Path(), help="Path to SQLite database")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path, verbose):
    """Solar billing - prosumer bills and investment returns."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = Path(db_path) if db_path else None


# Database commands
@cli.group("db")
def database():
    """Database management commands."""
    pass


@database.command("init")
@click.pass_context
def db_init(ctx):
    """Initialize the database schema."""
    db.init_db(ctx.obj["db_path"])
    console.print("[green]Database initialized successfully[/green]")

    try:
        tariffs = load_rates_from_yaml()
    except FileNotFoundError:
        return
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return
    count = save_rates_to_db(tariffs, ctx.obj["db_path"])
    console.print(f"[green]Loaded {count} tariff(s) from config[/green]")


@database.command("stats")
@click.pass_context
def db_stats(ctx):
    """Show database statistics."""
    stats = db.get_stats(ctx.obj["db_path"])

    table = Table(title="Database Statistics")
    table.add_column("Category", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Range")

    table.add_row("Installations", str(stats["installations"]["count"]), "")
    monthly = stats["monthly_energy"]
    table.add_row(
        "Monthly records",
        str(monthly["count"]),
        f"{monthly['earliest'] or 'N/A'} → {monthly['latest'] or 'N/A'}",
    )
    for name, count in stats["monthly_by_installation"].items():
        table.add_row(f"  └ {name}", str(count), "")
    table.add_row("Tariffs", str(stats["tariffs"]["count"]), "")

    console.print(table)


# Tariff commands
@cli.group()
def tariff():
    """Tariff management commands."""
    pass


@tariff.command("load")
@click.option("--config", type=click.Path(exists=True), help="Path to tariffs.yaml")
@click.pass_context
def tariff_load(ctx, config):
    """Load tariffs from YAML config."""
    try:
        tariffs = load_rates_from_yaml(Path(config) if config else None)
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return
    count = save_rates_to_db(tariffs, ctx.obj["db_path"])
    console.print(f"[green]Loaded {count} tariff(s)[/green]")


@tariff.command("show")
@click.option("--name", default=DEFAULT_RATES.name, help="Tariff name")
@click.pass_context
def tariff_show(ctx, name):
    """Show the rates of a tariff."""
    try:
        rates = get_rates(name, ctx.obj["db_path"])
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return

    table = Table(title=f"Tariff: {rates.name}")
    table.add_column("Rate", style="cyan")
    table.add_column("Value", justify="right")
    for key in RATE_KEYS:
        table.add_row(key, f"{getattr(rates, key):g}")
    console.print(table)


# Installation commands
@cli.group("installation")
def installation_cmd():
    """Installation management commands."""
    pass


@installation_cmd.command("add")
@click.argument("name")
@click.option("--approved-power", type=float, required=True, help="Approved power (kW)")
@click.option("--installed-kw", type=float, default=0.0, help="Installed solar power (kWp)")
@click.option("--self-consumption", type=float, default=70.0, help="Assumed self-consumption (%)")
@click.pass_context
def installation_add(ctx, name, approved_power, installed_kw, self_consumption):
    """Add or update an installation."""
    if approved_power < 0 or installed_kw < 0 or not 0 <= self_consumption <= 100:
        console.print("[red]Error: power must be non-negative and self-consumption 0-100%[/red]")
        return
    inst = add_installation(
        Installation(name, approved_power, installed_kw, self_consumption), ctx.obj["db_path"]
    )
    console.print(f"[green]Saved installation {inst.name} (id {inst.id})[/green]")


# Import commands
@cli.group("import")
def import_cmd():
    """Import monthly energy data."""
    pass


@import_cmd.command("csv")
@click.option("--installation", "name", required=True, help="Installation name")
@click.option("--csv", "csv_path", type=click.Path(exists=True), required=True, help="Path to monthly CSV")
@click.pass_context
def import_csv(ctx, name, csv_path):
    """Import monthly energy records from CSV."""
    try:
        inst = get_installation(name, ctx.obj["db_path"])
        result = monthly_csv.import_from_csv(Path(csv_path), inst, ctx.obj["db_path"])
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return

    console.print(f"[green]Imported {result['imported']} months[/green]")
    if result["skipped"]:
        console.print(f"[yellow]Skipped {result['skipped']} duplicates[/yellow]")


@import_cmd.command("hourly")
@click.option("--installation", "name", required=True, help="Installation name")
@click.option("--project-id", help="Remote project id (defaults to the installation name)")
@click.option("--days", default=365, help="Number of days to fetch (default: 365)")
@click.option("--from-date", type=click.DateTime(formats=["%Y-%m-%d"]), help="Start date (YYYY-MM-DD)")
@click.option("--to-date", type=click.DateTime(formats=["%Y-%m-%d"]), help="End date (YYYY-MM-DD)")
@click.pass_context
def import_hourly(ctx, name, project_id, days, from_date, to_date):
    """Fetch hourly statistics and store them as monthly records.

    Requires SOLARBILL_API_URL and optionally SOLARBILL_API_KEY.
    """
    end = to_date or datetime.now()
    start = from_date or end - timedelta(days=days)

    try:
        inst = get_installation(name, ctx.obj["db_path"])
        console.print(f"[cyan]Fetching hourly stats {start.date()} → {end.date()}...[/cyan]")
        rows = hourly_stats.fetch_hourly_rows(project_id or name, start, end)
        inputs = hourly.aggregate_monthly(rows)
        result = save_monthly_inputs(inst, inputs, ctx.obj["db_path"])
    except (ValueError, hourly_stats.HourlyStatsError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return

    console.print(f"[green]Imported {result['imported']} months (from {len(rows)} hourly rows)[/green]")
    if result["skipped"]:
        console.print(f"[yellow]Skipped {result['skipped']} existing months[/yellow]")


# Billing commands
def _export_policy(no_credit: bool) -> ExportPolicy:
    return ExportPolicy.NO_CREDIT if no_credit else ExportPolicy.OFFSET


def _load_months(ctx, name, year, rolling):
    inst = get_installation(name, ctx.obj["db_path"])
    inputs = get_monthly_inputs(inst, year, ctx.obj["db_path"])
    if rolling:
        inputs = rolling_window(inputs)
    return inst, inputs


@cli.group()
def bill():
    """Bill calculation commands."""
    pass


@bill.command("annual")
@click.option("--installation", "name", required=True, help="Installation name")
@click.option("--year", type=int, help="Calendar year (default: all stored months)")
@click.option("--rolling", is_flag=True, help="Use the last 12 stored months")
@click.option("--tariff", "tariff_name", default=DEFAULT_RATES.name, help="Tariff name")
@click.option("--no-credit", is_flag=True, help="Do not credit exported energy")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def bill_annual(ctx, name, year, rolling, tariff_name, no_credit, as_json):
    """Calculate monthly bills and annual totals."""
    try:
        inst, inputs = _load_months(ctx, name, year, rolling)
        rates = get_rates(tariff_name, ctx.obj["db_path"])
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return

    if not inputs:
        console.print("[yellow]No monthly data found[/yellow]")
        return

    policy = _export_policy(no_credit)
    result = calculate_annual(inputs, rates, inst.approved_power_kw, inst.self_consumption_percent, policy)
    baseline = calculate_baseline(inputs, rates, inst.approved_power_kw, policy)
    data = summary.annual_summary(result, baseline)

    if as_json:
        console.print(json.dumps(data, indent=2))
        return

    table = Table(title=f"Bills: {inst.name}")
    table.add_column("Month", style="cyan")
    table.add_column("Import VT", justify="right")
    table.add_column("Import NT", justify="right")
    table.add_column("Export", justify="right")
    table.add_column("Credited", justify="right")
    table.add_column("Surplus", justify="right")
    table.add_column("Total (RSD)", justify="right")
    table.add_column("Without solar", justify="right")
    table.add_column("Savings", justify="right", style="green")
    for b, base in zip(result.months, baseline.months):
        table.add_row(
            b.label,
            f"{b.import_vt:.0f}",
            f"{b.import_nt:.0f}",
            f"{b.solar_exported:.0f}",
            f"{b.recognized_export_kwh:.0f}",
            f"{b.surplus_remaining:.0f}",
            f"{b.total_bill:,.2f}",
            f"{base.total_bill:,.2f}",
            f"{base.total_bill - b.total_bill:,.2f}",
        )
    console.print(table)
    console.print(summary.format_annual_summary_text(data))


@bill.command("month")
@click.option("--installation", "name", required=True, help="Installation name")
@click.option("--year", type=int, required=True, help="Year")
@click.option("--month", type=click.IntRange(1, 12), required=True, help="Month (1-12)")
@click.option("--tariff", "tariff_name", default=DEFAULT_RATES.name, help="Tariff name")
@click.option("--no-credit", is_flag=True, help="Do not credit exported energy")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def bill_month(ctx, name, year, month, tariff_name, no_credit, as_json):
    """Show the itemized bill for one month.

    The kWh bank surplus is replayed from the preceding stored months.
    """
    try:
        inst = get_installation(name, ctx.obj["db_path"])
        inputs = [
            m for m in get_monthly_inputs(inst, db_path=ctx.obj["db_path"])
            if (m.year, m.month) <= (year, month)
        ]
        rates = get_rates(tariff_name, ctx.obj["db_path"])
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return

    if not inputs or (inputs[-1].year, inputs[-1].month) != (year, month):
        console.print(f"[yellow]No data for {year}-{month:02d}[/yellow]")
        return

    policy = _export_policy(no_credit)
    history = calculate_annual(
        inputs[:-1], rates, inst.approved_power_kw, inst.self_consumption_percent, policy
    )
    surplus = 0.0 if is_reset_month(inputs[-1]) else history.final_surplus_kwh
    result = calculate_month(
        inputs[-1], rates, inst.approved_power_kw, surplus, inst.self_consumption_percent, policy
    )
    baseline = calculate_month(
        baseline_inputs(inputs[-1:])[0], rates, inst.approved_power_kw, 0.0, 0.0, policy
    )
    data = summary.monthly_bill_summary(result, baseline)

    if as_json:
        console.print(json.dumps(data, indent=2))
        return

    table = Table(title=f"Bill: {inst.name}, {result.label}")
    table.add_column("Item", style="cyan")
    table.add_column("RSD", justify="right")
    for item, value in data["costs"].items():
        table.add_row(item.replace("_", " "), f"{value:,.2f}")
    table.add_row("subtotal", f"{data['subtotal']:,.2f}", style="bold")
    table.add_row("excise", f"{data['excise']:,.2f}")
    table.add_row("vat", f"{data['vat']:,.2f}")
    table.add_row("solar credit", f"-{data['solar_credit']:,.2f}", style="green")
    table.add_row("total", f"{data['total']:,.2f}", style="bold")
    table.add_row("without solar", f"{data['baseline_total']:,.2f}")
    table.add_row("savings", f"{data['savings']:,.2f}", style="green")
    console.print(table)


@cli.command()
@click.option("--installation", "name", required=True, help="Installation name")
@click.option("--year", type=int, help="Calendar year (default: last 12 stored months)")
@click.option("--tariff", "tariff_name", default=DEFAULT_RATES.name, help="Tariff name")
@click.option("--investment", type=float, help="Investment cost (default: from tariff)")
@click.option("--inflation", type=float, default=DEFAULT_INFLATION_PERCENT, help="Yearly price inflation (%)")
@click.option("--years", type=click.IntRange(1, 50), default=DEFAULT_YEARS, help="Horizon in years")
@click.option("--no-credit", is_flag=True, help="Do not credit exported energy")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def invest(ctx, name, year, tariff_name, investment, inflation, years, no_credit, as_json):
    """Payback, ROI and IRR of an installation."""
    try:
        inst, inputs = _load_months(ctx, name, year, rolling=year is None)
        rates = get_rates(tariff_name, ctx.obj["db_path"])
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return

    if not inputs:
        console.print("[yellow]No monthly data found[/yellow]")
        return

    policy = _export_policy(no_credit)
    result = calculate_annual(inputs, rates, inst.approved_power_kw, inst.self_consumption_percent, policy)
    analysis = calculate_investment_analysis(
        result,
        inputs,
        rates,
        inst.approved_power_kw,
        investment if investment is not None else rates.investment_cost,
        inflation,
        years,
        policy,
    )
    _print_investment(summary.investment_summary(analysis), as_json)


@cli.command()
@click.option("--installed-kw", type=float, required=True, help="Solar plant size (kWp)")
@click.option("--monthly-consumption", type=float, required=True, help="Consumption per month (kWh)")
@click.option("--approved-power", type=float, default=10.0, help="Approved power (kW)")
@click.option("--self-consumption", type=float, default=70.0, help="Assumed self-consumption (%)")
@click.option("--vt-share", type=float, default=DEFAULT_VT_SHARE, help="Share of consumption in VT")
@click.option("--investment", type=float, default=DEFAULT_RATES.investment_cost, help="Investment cost")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def estimate(installed_kw, monthly_consumption, approved_power, self_consumption, vt_share, investment, as_json):
    """Estimate savings for a planned plant from typical Serbian yields."""
    try:
        inputs = build_estimated_inputs(installed_kw, monthly_consumption, vt_share)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return

    result = calculate_annual(inputs, DEFAULT_RATES, approved_power, self_consumption)
    analysis = calculate_investment_analysis(result, inputs, DEFAULT_RATES, approved_power, investment)

    if not as_json:
        baseline = calculate_baseline(inputs, DEFAULT_RATES, approved_power)
        console.print(summary.format_annual_summary_text(summary.annual_summary(result, baseline)))
        console.print()
    _print_investment(summary.investment_summary(analysis), as_json)


def _print_investment(data: dict, as_json: bool) -> None:
    if as_json:
        console.print(json.dumps(data, indent=2))
        return

    table = Table(title="Cash Flow")
    table.add_column("Year", justify="right", style="cyan")
    table.add_column("Savings", justify="right")
    table.add_column("Maintenance", justify="right")
    table.add_column("Net", justify="right")
    table.add_column("Cumulative", justify="right")
    for cf in data["cash_flows"]:
        style = "green" if cf["cumulative"] >= 0 else None
        table.add_row(
            str(cf["year"]),
            f"{cf['savings']:,.0f}",
            f"{cf['maintenance']:,.0f}",
            f"{cf['net']:,.0f}",
            f"{cf['cumulative']:,.0f}",
            style=style,
        )
    console.print(table)
    console.print(summary.format_investment_summary_text(data))


if __name__ == "__main__":
    cli()
