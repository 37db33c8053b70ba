"""Command-line interface for the Strava run analytics engine."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

from .config import config
from .exceptions import InvalidInputError
from .ingest import load_activities
from .analysis.best_efforts import BEST_EFFORT_TARGETS, find_best_for
from .analysis.gear import summarize_shoes
from .analysis.kpis import compute_kpis
from .analysis.period_series import build_series
from .analysis.race_predictor import (
    DISTANCE_EPSILON_KM,
    MARATHON_KM,
    predict_marathon,
    predict_marathon_from_time,
    predict_seconds,
)
from .analysis.training_load import compute_training_load

console = Console()

ZONE_STYLES = {
    "green": "green",
    "orange": "yellow",
    "red": "red",
    "insufficient_data": "black",
}

ZONE_MESSAGES = {
    "green": "Reasonable progression.",
    "orange": "Load is climbing: stay careful today.",
    "red": "High risk: rest or keep it very short.",
    "insufficient_data": "Not enough recent data for a reliable estimate.",
}

WEAR_STYLES = {"green": "green", "orange": "yellow", "red": "red"}


def format_hms(seconds: int, always_hours: bool = True) -> str:
    """H:MM:SS (or M:SS when under an hour and `always_hours` is off)."""
    h, rem = divmod(int(seconds), 3600)
    m, s = divmod(rem, 60)
    if h or always_hours:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"


def format_pace(seconds_per_km: Optional[float]) -> str:
    if seconds_per_km is None or seconds_per_km <= 0:
        return "-"
    m = int(seconds_per_km // 60)
    s = int(round(seconds_per_km % 60))
    if s == 60:
        m, s = m + 1, 0
    return f"{m}:{s:02d}/km"


def parse_hms(value: str) -> int:
    """Parse H:MM:SS, MM:SS or plain seconds."""
    try:
        parts = [int(p) for p in value.split(":")]
    except ValueError:
        raise click.BadParameter(f"invalid time {value!r}")
    if len(parts) > 3:
        raise click.BadParameter(f"invalid time {value!r}")
    seconds = 0
    for part in parts:
        seconds = seconds * 60 + part
    return seconds


def _load(file: Path):
    """Load activities or exit with a readable error."""
    try:
        return load_activities(file)
    except FileNotFoundError:
        console.print(f"[red]❌ Activities file not found: {file}[/red]")
    except (json.JSONDecodeError, InvalidInputError) as e:
        console.print(f"[red]❌ Could not read activities from {file}: {e}[/red]")
    raise SystemExit(1)


file_option = click.option(
    "--file", "file", type=click.Path(path_type=Path), default=None,
    help="Strava activities JSON export (defaults to ACTIVITIES_FILE)",
)
today_option = click.option(
    "--today", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
    help="Reference date (YYYY-MM-DD), defaults to today",
)


@click.group()
def cli():
    """Strava run analytics: best efforts, race prediction and training load."""
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    try:
        config.validate()
    except ValueError as e:
        console.print(f"[red]❌ Configuration Error: {e}[/red]")
        raise SystemExit(1)


@cli.command()
@click.argument("distance", type=click.Choice(list(BEST_EFFORT_TARGETS)), default="5k")
@click.option("--days", default=None, type=int, help="Lookback window in days")
@click.option("--limit", default=None, type=int, help="Number of efforts to show")
@file_option
@today_option
def best(distance, days, limit, file, today):
    """Fastest runs close to a race distance."""
    activities = _load(file or config.ACTIVITIES_FILE)
    now = today.replace(hour=23, minute=59, second=59) if today else datetime.now()
    window = days if days is not None else config.BEST_EFFORT_WINDOW_DAYS

    console.print(Panel.fit(f"🏅 Best {distance} efforts (last {window} days)", style="bold blue"))

    efforts = find_best_for(distance, activities, now, window_days=window, limit=limit)
    if not efforts:
        console.print(f"[yellow]No {distance} efforts found in the period.[/yellow]")
        return

    table = Table(box=box.ROUNDED)
    table.add_column("#", style="black")
    table.add_column("Date")
    table.add_column("Name")
    table.add_column("Km", justify="right")
    table.add_column("Time", justify="right", style="green")
    table.add_column("Pace", justify="right")

    for rank, effort in enumerate(efforts, 1):
        table.add_row(
            str(rank),
            effort.date_local.strftime("%Y-%m-%d"),
            effort.activity_name,
            f"{effort.dist_km:.2f}",
            format_hms(effort.seconds, always_hours=False),
            format_pace(effort.seconds / effort.dist_km),
        )
    console.print(table)


@cli.command()
@click.option("--days", default=None, type=int, help="Window for the reference effort")
@click.option("--exponent", default=None, type=float, help="Riegel exponent (default 1.06)")
@click.option("--time", "ref_time", default=None, help="Manual reference time (H:MM:SS)")
@click.option("--distance", "ref_km", default=None, type=float, help="Manual reference distance (km)")
@click.option("--target", default=MARATHON_KM, type=float, show_default=True, help="Target distance (km)")
@click.option("--readiness/--no-readiness", default=False,
              help="Manual marathon only: add penalties for low weekly volume or short long runs")
@file_option
@today_option
def predict(days, exponent, ref_time, ref_km, target, readiness, file, today):
    """Predict a race time with Riegel's formula."""
    exponent = exponent if exponent is not None else config.RIEGEL_EXPONENT
    console.print(Panel.fit(f"🔮 Race Prediction (Riegel {exponent})", style="bold blue"))

    if ref_time or ref_km:
        if not (ref_time and ref_km):
            console.print("[red]❌ --time and --distance must be given together.[/red]")
            raise SystemExit(1)
        _predict_manual(parse_hms(ref_time), ref_km, target, exponent, readiness, file)
        return

    activities = _load(file or config.ACTIVITIES_FILE)
    prediction = predict_marathon(activities, _utc_now(today), window_days=days, exponent=exponent)
    if prediction is None:
        console.print("[yellow]No 5K/10K/half-marathon run found in the period.[/yellow]")
        return

    ref = prediction.reference
    console.print(
        f"[bold]Reference:[/bold] {ref.kind.value} {ref.distance_km:.2f} km in "
        f"{format_hms(ref.seconds)} ({ref.start:%Y-%m-%d})"
    )
    console.print(
        f"[bold]Marathon:[/bold] [green]{format_hms(prediction.adjusted_seconds)}[/green] "
        f"({format_pace(prediction.adjusted_seconds / prediction.target_km)})"
    )


def _utc_now(today: Optional[datetime]) -> datetime:
    """Naive UTC time at the end of local `today`, or the current UTC time."""
    if today is None:
        return datetime.now(timezone.utc).replace(tzinfo=None)
    end_of_day = today.replace(hour=23, minute=59, second=59)
    return end_of_day.astimezone(timezone.utc).replace(tzinfo=None)


def _predict_manual(seconds, ref_km, target, exponent, readiness, file):
    """Print a prediction from a manually entered reference."""
    console.print(f"[bold]Reference:[/bold] {ref_km:g} km in {format_hms(seconds)}")

    try:
        if abs(target - MARATHON_KM) >= DISTANCE_EPSILON_KM:
            predicted = predict_seconds(seconds, ref_km, target, exponent)
            console.print(f"[bold]Predicted {target:g} km:[/bold] [green]{format_hms(predicted)}[/green] "
                          f"({format_pace(predicted / target)})")
            return

        weekly_avg = longest = None
        if readiness:
            summary = compute_kpis(_load(file or config.ACTIVITIES_FILE))
            weekly_avg = summary.km12 / 12
            longest = summary.longest_km
        prediction = predict_marathon_from_time(
            seconds, ref_km, exponent, weekly_avg_km=weekly_avg, longest_km=longest,
        )
    except InvalidInputError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise SystemExit(1)

    console.print(f"[bold]Marathon (raw):[/bold] {format_hms(prediction.raw_seconds)}")
    console.print(
        f"[bold]Marathon (adjusted):[/bold] [green]{format_hms(prediction.adjusted_seconds)}[/green] "
        f"({format_pace(prediction.adjusted_seconds / prediction.target_km)})"
    )
    if prediction.penalty_seconds:
        console.print(f"[yellow]Readiness penalty: +{format_hms(prediction.penalty_seconds, always_hours=False)}[/yellow]")


@cli.command()
@file_option
@today_option
def load(file, today):
    """Today's training load and recommended remaining distance."""
    activities = _load(file or config.ACTIVITIES_FILE)
    day = today.date() if today else datetime.now().date()
    metrics = compute_training_load(activities, day)

    zone = metrics.zone.value
    style = ZONE_STYLES[zone]
    acr = "-" if metrics.acr is None else f"{metrics.acr:.2f}"

    text = f"""
[bold {style}]{zone.upper()}[/bold {style}]  ACR: {acr}
{ZONE_MESSAGES[zone]}

[bold]Remaining today:[/bold] {metrics.remaining_km_today:.1f} km (cap {metrics.max_km_today:.1f} km)
[bold]Acute 7d:[/bold] {metrics.acute7_km:.1f} km   [bold]Chronic 28d:[/bold] {metrics.chronic28_avg_km:.1f} km/week
[bold]Today:[/bold] {metrics.km_today:.1f} km   [bold]Yesterday:[/bold] {metrics.km_yesterday:.1f} km
[bold]Adjustments:[/bold] recovery +{metrics.recovery_boost_ratio * 100:.1f}% ({metrics.rest_days_before_today} rest days), fatigue -{metrics.fatigue_penalty_ratio * 100:.1f}%, carry-over -{metrics.carryover_penalty_ratio * 100:.1f}%
"""
    if metrics.overrun_today > 0:
        text += f"[red]Already {metrics.overrun_today:.1f} km over today's cap.[/red]\n"

    console.print(Panel(text.strip(), title=f"📈 Training Load {day:%Y-%m-%d}", border_style=style))


@cli.command()
@click.argument("period", type=click.Choice(["day", "week", "month", "1m", "4m", "12m"]), default="week")
@click.option("--count", default=None, type=int, help="Number of buckets")
@file_option
@today_option
def series(period, count, file, today):
    """Run distance per day, week or month."""
    activities = _load(file or config.ACTIVITIES_FILE)
    day = today.date() if today else datetime.now().date()
    try:
        buckets = build_series(activities, period, day, count=count)
    except InvalidInputError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise SystemExit(1)

    table = Table(title=f"Run km per {period}", box=box.ROUNDED)
    table.add_column("Start", style="black")
    table.add_column("Label")
    table.add_column("Km", justify="right", style="green")
    for bucket in buckets:
        table.add_row(bucket.key, bucket.label, f"{bucket.km:.1f}")

    total = sum(b.km for b in buckets)
    table.caption = f"Total {total:.1f} km, average {total / len(buckets):.1f} km"
    console.print(table)


@cli.command()
@file_option
def kpis(file):
    """Headline running numbers."""
    activities = _load(file or config.ACTIVITIES_FILE)
    summary = compute_kpis(activities)

    table = Table(title="Running KPIs", box=box.ROUNDED, show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Runs", str(summary.count))
    table.add_row("Total", f"{summary.total_km:.1f} km")
    table.add_row("Average pace", format_pace(summary.avg_pace_s_per_km))
    table.add_row("Best pace", format_pace(summary.best_pace_s_per_km))
    table.add_row("Longest run", f"{summary.longest_km:.1f} km")
    table.add_row("Last 4 weeks", f"{summary.km4:.1f} km")
    table.add_row("Last 12 weeks", f"{summary.km12:.1f} km")
    ratio = summary.acute_chronic_ratio
    table.add_row("4w/12w ratio", "-" if ratio is None else f"{ratio:.2f}")
    console.print(table)


@cli.command()
@click.argument("profile", type=click.Path(exists=True, path_type=Path))
@click.option("--asc", is_flag=True, help="Least worn first")
def shoes(profile, asc):
    """Shoe wear from an athlete profile JSON (or a list of shoes)."""
    try:
        with profile.open(encoding="utf-8") as f:
            payload = json.load(f)
        items = payload.get("shoes", []) if isinstance(payload, dict) else payload
        if items is not None and not isinstance(items, list):
            raise InvalidInputError("expected a list of shoes")
        usage = summarize_shoes(items, descending=not asc)
    except (json.JSONDecodeError, InvalidInputError) as e:
        console.print(f"[red]❌ Could not read shoes from {profile}: {e}[/red]")
        raise SystemExit(1)

    if not usage:
        console.print("[yellow]No shoes found in the profile.[/yellow]")
        return

    table = Table(title="👟 Shoes", box=box.ROUNDED)
    table.add_column("Name")
    table.add_column("Km", justify="right")
    table.add_column("Wear")
    for shoe in usage:
        style = WEAR_STYLES[shoe.wear.value]
        table.add_row(shoe.name or "Unknown model", f"{shoe.km:.1f}", f"[{style}]{shoe.wear.value}[/{style}]")
    console.print(table)


if __name__ == "__main__":
    cli()
