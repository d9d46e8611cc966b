"""CLI interface using Typer."""

from __future__ import annotations

import json
import sqlite3
from datetime import date
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from biotrend.app_logging import configure_logging
from biotrend.config import get_settings
from biotrend.db import get_db
from biotrend.errors import InvalidParameterError
from biotrend.profiles.body_calc import (
    ACTIVITY_DESCRIPTIONS,
    ACTIVITY_MULTIPLIERS,
    ArrivalEstimate,
    estimate_arrival,
    plan_to_dict,
)

app = typer.Typer(
    help="Weight trend, habit adherence and weekly insight tracking",
    no_args_is_help=True,
)
console = Console()

ACTIVITY_HELP = "Activity multiplier: " + ", ".join(
    f"{ACTIVITY_MULTIPLIERS[level]} {label}"
    for level, (label, _, _) in ACTIVITY_DESCRIPTIONS.items()
)

user_app = typer.Typer(help="Manage onboarding profile")
weight_app = typer.Typer(help="Log and track weight with EMA trend")
meals_app = typer.Typer(help="Log plate checks (protein, plants, satiety)")

app.add_typer(user_app, name="user")
app.add_typer(weight_app, name="weight")
app.add_typer(meals_app, name="meals")


# ============================================================================
# Helpers
# ============================================================================


def output_json(response: dict) -> None:
    """Print a JSON response envelope to stdout."""
    print(json.dumps(response, indent=2))


def ensure_tracking_tables() -> None:
    """Ensure tracking tables exist (idempotent)."""
    get_db().ensure_schema()


def wants_json(flag: bool) -> bool:
    """True when --json was passed or JSON is the configured default format."""
    return flag or get_settings().defaults.output_format == "json"


def fail(command: str, message: str, json_output: bool, suggestion: Optional[str] = None) -> None:
    """Report an error in the requested format and exit with status 1."""
    if json_output:
        response = {"success": False, "command": command, "errors": [message]}
        if suggestion:
            response["suggestions"] = [suggestion]
        output_json(response)
    else:
        console.print(f"[red]{message}[/red]")
        if suggestion:
            console.print(suggestion)
    raise typer.Exit(1)


def parse_date(date_str: Optional[str], command: str, json_output: bool) -> date:
    """Parse a YYYY-MM-DD option, defaulting to today."""
    if not date_str:
        return date.today()
    try:
        return date.fromisoformat(date_str)
    except ValueError:
        fail(command, f"Invalid date '{date_str}', expected YYYY-MM-DD", json_output)


def load_profile(conn: sqlite3.Connection, user_id: Optional[int], command: str, json_output: bool):
    """Fetch the requested (or default) profile, exiting if there is none."""
    from biotrend.tracking.queries import UserQueries

    if user_id:
        profile = UserQueries.get_user(conn, user_id)
    else:
        profile = UserQueries.get_default_user(conn)

    if profile is None:
        fail(
            command,
            "No user profile found",
            json_output,
            "Create one with: biotrend user create --sex female --age 30 "
            "--height 170 --weight 70",
        )
    return profile


@app.callback()
def main_callback() -> None:
    """Configure logging from settings before any command."""
    configure_logging(get_settings().logging.level)


@user_app.callback()
def user_callback() -> None:
    """Ensure tracking tables exist before any user command."""
    ensure_tracking_tables()


@weight_app.callback()
def weight_callback() -> None:
    """Ensure tracking tables exist before any weight command."""
    ensure_tracking_tables()


@meals_app.callback()
def meals_callback() -> None:
    """Ensure tracking tables exist before any meals command."""
    ensure_tracking_tables()


# ============================================================================
# User Profile Commands
# ============================================================================


@user_app.command("create")
def user_create(
    sex: str = typer.Option(..., "--sex", help="Sex (male/female)"),
    age: int = typer.Option(..., "--age", help="Age in years"),
    height: float = typer.Option(..., "--height", help="Height in cm"),
    weight: float = typer.Option(..., "--weight", help="Current weight in kg"),
    activity: float = typer.Option(1.2, "--activity", help=ACTIVITY_HELP),
    goal: str = typer.Option(
        "maintenance", "--goal", help="Goal (weight_loss/maintenance/muscle_gain)"
    ),
    target: Optional[float] = typer.Option(None, "--target", help="Goal weight in kg"),
    name: Optional[str] = typer.Option(None, "--name", help="Display name"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Create a profile from onboarding biometrics."""
    from biotrend.profiles.models import UserProfile
    from biotrend.tracking.queries import UserQueries

    json_output = wants_json(json_output)

    try:
        profile = UserProfile(
            user_id=None,
            sex=sex.lower(),
            age=age,
            height_cm=height,
            weight_kg=weight,
            activity_multiplier=activity,
            goal=goal.lower(),
            target_weight_kg=target,
            display_name=name,
        )
    except ValueError as e:
        fail("user create", str(e), json_output)

    db = get_db()
    with db.get_connection() as conn:
        user_id = UserQueries.create_user(conn, profile)

    if json_output:
        output_json({
            "success": True,
            "command": "user create",
            "data": {"user_id": user_id, "profile": {
                "sex": profile.sex, "age": age, "height_cm": height,
                "weight_kg": weight, "activity_multiplier": activity,
                "goal": profile.goal, "target_weight_kg": target,
            }},
            "human_summary": f"Created user profile (ID: {user_id})",
        })
    else:
        console.print(f"[green]Created user profile (ID: {user_id})[/green]")


@user_app.command("show")
def user_show(
    user_id: Optional[int] = typer.Option(None, "--id", help="User ID (default: first user)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show user profile."""
    json_output = wants_json(json_output)
    db = get_db()
    with db.get_connection() as conn:
        profile = load_profile(conn, user_id, "user show", json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "user show",
            "data": {
                "user_id": profile.user_id,
                "display_name": profile.display_name,
                "sex": profile.sex,
                "age": profile.age,
                "height_cm": profile.height_cm,
                "weight_kg": profile.weight_kg,
                "activity_multiplier": profile.activity_multiplier,
                "goal": profile.goal,
                "target_weight_kg": profile.target_weight_kg,
            },
            "human_summary": f"User {profile.user_id}: {profile.sex}, {profile.age}y, "
                             f"{profile.height_cm}cm, {profile.weight_kg}kg",
        })
    else:
        console.print(f"[bold]User Profile (ID: {profile.user_id})[/bold]")
        if profile.display_name:
            console.print(f"  Name: {profile.display_name}")
        console.print(f"  Sex: {profile.sex}")
        console.print(f"  Age: {profile.age}")
        console.print(f"  Height: {profile.height_cm} cm")
        console.print(f"  Weight: {profile.weight_kg} kg")
        console.print(f"  Activity: x{profile.activity_multiplier}")
        console.print(f"  Goal: {profile.goal}")
        if profile.target_weight_kg:
            console.print(f"  Target weight: {profile.target_weight_kg} kg")


@user_app.command("activities")
def user_activities(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List the supported activity levels and their multipliers."""
    json_output = wants_json(json_output)
    levels = [
        {
            "level": level.value,
            "multiplier": ACTIVITY_MULTIPLIERS[level],
            "label": label,
            "description": description,
            "hint": hint,
        }
        for level, (label, description, hint) in ACTIVITY_DESCRIPTIONS.items()
    ]

    if json_output:
        output_json({
            "success": True,
            "command": "user activities",
            "data": {"levels": levels},
            "human_summary": f"{len(levels)} activity levels",
        })
    else:
        table = Table(title="Activity Levels")
        table.add_column("Multiplier", justify="right", style="cyan")
        table.add_column("Level")
        table.add_column("Description")
        table.add_column("Hint", style="dim")
        for entry in levels:
            table.add_row(
                f"{entry['multiplier']}", entry["label"], entry["description"], entry["hint"]
            )
        console.print(table)


@user_app.command("update")
def user_update(
    user_id: Optional[int] = typer.Option(None, "--id", help="User ID (default: first user)"),
    weight: Optional[float] = typer.Option(None, "--weight", help="Update current weight"),
    goal: Optional[str] = typer.Option(None, "--goal", help="Update goal"),
    target: Optional[float] = typer.Option(None, "--target", help="Update goal weight"),
    activity: Optional[float] = typer.Option(None, "--activity", help=ACTIVITY_HELP),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Update user profile."""
    from dataclasses import replace

    from biotrend.tracking.queries import UserQueries

    json_output = wants_json(json_output)

    db = get_db()
    with db.get_connection() as conn:
        profile = load_profile(conn, user_id, "user update", json_output)

        changes = {}
        if weight is not None:
            changes["weight_kg"] = weight
        if goal is not None:
            changes["goal"] = goal.lower()
        if target is not None:
            changes["target_weight_kg"] = target
        if activity is not None:
            changes["activity_multiplier"] = activity

        try:
            profile = replace(profile, **changes)
        except ValueError as e:
            fail("user update", str(e), json_output)

        UserQueries.update_user(conn, profile)

    if json_output:
        output_json({
            "success": True,
            "command": "user update",
            "data": {"user_id": profile.user_id},
            "human_summary": "Profile updated",
        })
    else:
        console.print("[green]Profile updated[/green]")


# ============================================================================
# Weight Tracking Commands
# ============================================================================


@weight_app.command("add")
def weight_add(
    weight: float = typer.Argument(..., help="Weight in kg"),
    date_str: Optional[str] = typer.Option(
        None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"
    ),
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID (default: first user)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Log a weight reading (replaces any reading for the same date)."""
    from biotrend.tracking.ema import compute
    from biotrend.tracking.queries import WeightQueries

    json_output = wants_json(json_output)

    measured_at = parse_date(date_str, "weight add", json_output)

    db = get_db()
    with db.get_connection() as conn:
        profile = load_profile(conn, user_id, "weight add", json_output)
        try:
            WeightQueries.log_weight(conn, profile.user_id, weight, measured_at)
        except ValueError as e:
            fail("weight add", str(e), json_output)
        readings = WeightQueries.get_readings(conn, profile.user_id)

    trend = compute(readings).current

    if json_output:
        output_json({
            "success": True,
            "command": "weight add",
            "data": {
                "weight_kg": weight,
                "trend_kg": trend,
                "measured_at": measured_at.isoformat(),
            },
            "human_summary": f"Logged {weight:.1f} kg, trend: {trend:.1f} kg",
        })
    else:
        console.print(f"[green]Logged:[/green] {weight:.1f} kg on {measured_at}")
        console.print(f"[blue]Trend:[/blue] {trend:.1f} kg (EMA)")


@weight_app.command("list")
def weight_list(
    days: int = typer.Option(30, "--days", "-d", help="Number of days to show"),
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List weight history with trends."""
    from biotrend.tracking.ema import compute
    from biotrend.tracking.queries import WeightQueries

    json_output = wants_json(json_output)

    db = get_db()
    with db.get_connection() as conn:
        profile = load_profile(conn, user_id, "weight list", json_output)
        readings = WeightQueries.get_readings(conn, profile.user_id)

    # Trend is replayed over the full history, then the display is windowed
    series = compute(readings).series
    cutoff = date.today().toordinal() - days + 1
    history = [p for p in series if p.day.toordinal() >= cutoff]

    if not history:
        if json_output:
            output_json({"success": True, "command": "weight list", "data": {"entries": []},
                         "human_summary": "No weight entries found"})
        else:
            console.print("No weight entries found")
        return

    if json_output:
        output_json({
            "success": True,
            "command": "weight list",
            "data": {
                "entries": [
                    {
                        "date": p.day.isoformat(),
                        "weight_kg": p.raw_weight_kg,
                        "trend_kg": p.trend_kg,
                    }
                    for p in history
                ]
            },
            "human_summary": f"{len(history)} entries over {days} days",
        })
    else:
        table = Table(title=f"Weight History (last {days} days)")
        table.add_column("Date", style="cyan")
        table.add_column("Weight", justify="right")
        table.add_column("Trend", justify="right", style="blue")
        table.add_column("", justify="right")

        prev_trend = None
        for point in history:
            delta = ""
            if prev_trend is not None:
                delta = f"{point.trend_kg - prev_trend:+.1f}"
            prev_trend = point.trend_kg

            table.add_row(
                point.day.isoformat(),
                f"{point.raw_weight_kg:.1f}",
                f"{point.trend_kg:.1f}",
                delta,
            )

        console.print(table)


@weight_app.command("trend")
def weight_trend(
    days: int = typer.Option(30, "--days", "-d", help="Days to analyze"),
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show weight trend analysis."""
    from biotrend.tracking.diagnostics import format_weight_report, generate_weight_report
    from biotrend.tracking.queries import WeightQueries

    json_output = wants_json(json_output)

    db = get_db()
    with db.get_connection() as conn:
        profile = load_profile(conn, user_id, "weight trend", json_output)
        readings = WeightQueries.get_readings(conn, profile.user_id)

    report = generate_weight_report(readings, days=days)

    if report is None:
        fail("weight trend", "Not enough data for trend analysis", json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "weight trend",
            "data": {
                "current_weight_kg": report.current_weight,
                "current_trend_kg": report.current_trend,
                "trend_change_kg": round(report.trend_change, 1),
                "weekly_rate_kg": round(report.weekly_rate, 2),
                "period_days": report.period_days,
            },
            "human_summary": f"Trend: {report.current_trend:.1f} kg, "
                             f"{report.weekly_rate:+.2f} kg/week",
        })
    else:
        console.print(format_weight_report(report))


# ============================================================================
# Plate Check Commands
# ============================================================================


@meals_app.command("log")
def meals_log(
    slot: str = typer.Argument(..., help="Meal slot (breakfast/lunch/dinner/snack)"),
    protein: bool = typer.Option(False, "--protein/--no-protein", help="Protein on the plate"),
    plants: bool = typer.Option(False, "--plants/--no-plants", help="Plants on the plate"),
    satiety: int = typer.Option(3, "--satiety", "-s", help="Satiety 1-5"),
    date_str: Optional[str] = typer.Option(
        None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"
    ),
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Log a plate check (replaces an earlier check for the same slot)."""
    from biotrend.tracking.models import MealSlot
    from biotrend.tracking.queries import MealQueries

    json_output = wants_json(json_output)

    day = parse_date(date_str, "meals log", json_output)
    try:
        meal_slot = MealSlot(slot.lower())
    except ValueError:
        valid = ", ".join(s.value for s in MealSlot)
        fail("meals log", f"Unknown meal slot '{slot}' (expected one of: {valid})", json_output)

    db = get_db()
    with db.get_connection() as conn:
        profile = load_profile(conn, user_id, "meals log", json_output)
        try:
            MealQueries.log_meal_check(
                conn, profile.user_id, day, meal_slot, protein, plants, satiety
            )
        except ValueError as e:
            fail("meals log", str(e), json_output)

    summary = (
        f"{meal_slot.value} on {day}: protein {'yes' if protein else 'no'}, "
        f"plants {'yes' if plants else 'no'}, satiety {satiety}/5"
    )
    if json_output:
        output_json({
            "success": True,
            "command": "meals log",
            "data": {
                "date": day.isoformat(),
                "slot": meal_slot.value,
                "protein": protein,
                "plants": plants,
                "satiety": satiety,
            },
            "human_summary": summary,
        })
    else:
        console.print(f"[green]Logged:[/green] {summary}")


@meals_app.command("today")
def meals_today(
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show today's plate-check tally."""
    from biotrend.tracking.behavior import day_stats
    from biotrend.tracking.queries import MealQueries

    json_output = wants_json(json_output)

    db = get_db()
    with db.get_connection() as conn:
        profile = load_profile(conn, user_id, "meals today", json_output)
        log = MealQueries.get_day_log(conn, profile.user_id, date.today())

    stats = day_stats(log)
    summary = (
        f"Protein {stats.protein_hits}/{stats.meals_total}, "
        f"plants {stats.plants_hits}/{stats.meals_total}"
    )

    if json_output:
        output_json({
            "success": True,
            "command": "meals today",
            "data": {
                "protein_hits": stats.protein_hits,
                "plants_hits": stats.plants_hits,
                "meals_logged": [s.value for s in stats.meals_logged],
                "has_protein_today": stats.has_protein_today,
            },
            "human_summary": summary,
        })
    else:
        if not stats.meals_logged:
            console.print("No plate checks logged today")
            return
        console.print(f"[bold]Today:[/bold] {summary}")
        console.print(f"  Meals: {', '.join(s.value for s in stats.meals_logged)}")


# ============================================================================
# Weekly Review & Onboarding Commands
# ============================================================================


@app.command()
def review(
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the weekly review: adherence, trend and insight."""
    from biotrend.tracking.diagnostics import format_review
    from biotrend.tracking.ema import reading_on
    from biotrend.tracking.queries import MealQueries, WeightQueries
    from biotrend.tracking.review import build_review

    json_output = wants_json(json_output)

    ensure_tracking_tables()
    settings = get_settings()
    today = date.today()

    db = get_db()
    with db.get_connection() as conn:
        profile = load_profile(conn, user_id, "review", json_output)
        readings = WeightQueries.get_readings(conn, profile.user_id)
        logs = MealQueries.get_day_logs(
            conn, profile.user_id, days=settings.review.query_days, end=today
        )

    weekly = build_review(
        readings, logs, today, sparkline_points=settings.review.sparkline_points
    )
    weighed_today = reading_on(readings, today) is not None

    if json_output:
        data = weekly.to_dict()
        data["weighed_today"] = weighed_today
        output_json({
            "success": True,
            "command": "review",
            "data": data,
            "human_summary": weekly.insight,
        })
    else:
        console.print(format_review(weekly))
        if not weighed_today:
            console.print("[yellow]No weigh-in logged today[/yellow]")


@app.command()
def plan(
    user_id: Optional[int] = typer.Option(None, "--user", help="User ID"),
    target: Optional[float] = typer.Option(
        None, "--target", help="Goal weight in kg (default: profile target)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show calorie/protein targets and goal arrival from the profile."""
    from biotrend.tracking.review import build_onboarding

    json_output = wants_json(json_output)

    ensure_tracking_tables()
    db = get_db()
    with db.get_connection() as conn:
        profile = load_profile(conn, user_id, "plan", json_output)

    target_weight = target if target is not None else profile.target_weight_kg
    if target_weight is None:
        target_weight = profile.weight_kg

    try:
        result = build_onboarding(
            profile.sex,
            profile.age,
            profile.height_cm,
            profile.weight_kg,
            profile.activity_multiplier,
            profile.goal,
            target_weight,
        )
    except ValueError as e:
        fail("plan", str(e), json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "plan",
            "data": plan_to_dict(result.plan, result.arrival),
            "human_summary": f"{result.plan.target_calories} kcal/day, "
                             f"{result.plan.target_protein_grams}g protein",
        })
    else:
        console.print(result.plan.summary())
        console.print(_arrival_text(result.arrival))


@app.command()
def arrival(
    current: float = typer.Option(..., "--current", help="Current weight in kg"),
    target: float = typer.Option(..., "--target", help="Goal weight in kg"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Estimate when the goal weight is reached at 0.75% per week."""
    json_output = wants_json(json_output)
    try:
        estimate = estimate_arrival(current, target)
    except InvalidParameterError as e:
        fail("arrival", str(e), json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "arrival",
            "data": {
                "weeks": estimate.weeks,
                "date": estimate.arrival_date.isoformat(),
                "at_goal": estimate.at_goal,
            },
            "human_summary": _arrival_text(estimate),
        })
    else:
        console.print(_arrival_text(estimate))


def _arrival_text(estimate: ArrivalEstimate) -> str:
    if estimate.at_goal:
        return "Already at goal weight"
    return f"Projected arrival: {estimate.arrival_date.isoformat()} ({estimate.weeks} weeks)"


if __name__ == "__main__":
    app()
