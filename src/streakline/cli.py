"""Command line interface for Streakline."""

from __future__ import annotations

import functools
import logging
from datetime import date
from pathlib import Path

import click
from sqlalchemy.exc import SQLAlchemyError

from .config import BaseConfig
from .context import AppContext, create_app_context
from .logging_config import setup_logging, teardown_logging
from .services import analytics, auth, badges, reports
from .services.dates import WINDOWS, InvalidDateKey, format_day_key, parse_day_key, window_days
from .services.export_csv import export_completions_csv
from .services.habits import PersistenceError, compute_longest_streak, compute_momentum, streak_tier


class DayKeyType(click.ParamType):
    """Click parameter accepting a ``yyyy-MM-dd`` key."""

    name = "YYYY-MM-DD"

    def convert(self, value, param, ctx):
        if isinstance(value, date):
            return value
        try:
            return parse_day_key(value)
        except InvalidDateKey as exc:
            self.fail(str(exc), param, ctx)


DAY_KEY = DayKeyType()


def _handle_errors(func):
    """Report expected failures as a one-line error and exit code 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (PersistenceError, SQLAlchemyError) as exc:
            raise click.ClickException(f"Storage unavailable: {exc}") from exc
        except ValueError as exc:
            raise click.ClickException(str(exc)) from exc

    return wrapper


class CliState:
    """Lazily built context plus the reference date for this invocation."""

    def __init__(self, *, username: str | None, today: date):
        self.username = username
        self.today = today
        self._app: AppContext | None = None
        self.config = BaseConfig()

    @property
    def app(self) -> AppContext:
        if self._app is None:
            self._app = create_app_context(self.config, username=self.username)
        return self._app

    def close(self) -> None:
        if self._app is not None:
            self._app.close()
        teardown_logging()


pass_state = click.make_pass_decorator(CliState)


@click.group()
@click.option("--user", "username", envvar="STREAKLINE_USERNAME", default=None, help="Profile to act as")
@click.option("--today", type=DAY_KEY, default=None, help="Reference date (defaults to the current date)")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Show log output on the console")
@click.pass_context
def cli(ctx: click.Context, username: str | None, today: date | None, verbose: bool) -> None:
    """Track daily habits, streaks and monthly badges."""

    state = CliState(username=username, today=today or date.today())
    setup_logging(state.config, console_level=logging.INFO if verbose else logging.WARNING)
    ctx.obj = state
    ctx.call_on_close(state.close)


# ---------------------------------------------------------------------------
# habits
# ---------------------------------------------------------------------------


@cli.group()
def habits() -> None:
    """Create, list and delete habits."""


@habits.command("add")
@click.argument("name")
@pass_state
@_handle_errors
def habits_add(state: CliState, name: str) -> None:
    habit = state.app.tracker().create_habit(name)
    click.echo(f"Added habit #{habit.id}: {habit.name}")


@habits.command("list")
@pass_state
@_handle_errors
def habits_list(state: CliState) -> None:
    snap = state.app.tracker().snapshot()
    if not snap.habits:
        click.echo("No habits yet. Add one with: streakline habits add NAME")
        return
    key = format_day_key(state.today)
    for habit in snap.habits:
        mark = "x" if key in snap.days_for(habit.id) else " "
        click.echo(f"[{mark}] #{habit.id} {habit.name}")


@habits.command("delete")
@click.argument("habit_ref")
@click.confirmation_option(prompt="Delete this habit? History will be preserved but the habit will be gone.")
@pass_state
@_handle_errors
def habits_delete(state: CliState, habit_ref: str) -> None:
    tracker = state.app.tracker()
    habit = tracker.find_habit(habit_ref)
    tracker.delete_habit(habit.id)
    click.echo(f"Deleted habit #{habit.id}: {habit.name}")


# ---------------------------------------------------------------------------
# daily tracking
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("habit_ref")
@click.option("--day", type=DAY_KEY, default=None, help="Day to toggle (defaults to today)")
@pass_state
@_handle_errors
def done(state: CliState, habit_ref: str, day: date | None) -> None:
    """Toggle completion of a habit for a day."""

    tracker = state.app.tracker()
    habit = tracker.find_habit(habit_ref)
    target = day or state.today
    completed = tracker.toggle(habit.id, target)
    status = "done" if completed else "not done"
    click.echo(f"{habit.name}: {format_day_key(target)} marked {status}")


@cli.command()
@pass_state
@_handle_errors
def streaks(state: CliState) -> None:
    """Show current streaks, longest first."""

    tracker = state.app.tracker()
    ranked = tracker.streaks(state.today)
    if not ranked:
        click.echo("No habits yet.")
        return
    for habit, streak in ranked:
        best = compute_longest_streak(tracker.history(habit.id))
        click.echo(f"{habit.name}: {streak} day(s) - {streak_tier(streak)} (best {best})")


@cli.command()
@click.argument("habit_ref")
@click.option("--range", "window", type=click.Choice(WINDOWS), default=WINDOWS[0], show_default=True)
@pass_state
@_handle_errors
def momentum(state: CliState, habit_ref: str, window: str) -> None:
    """Show the running momentum score of a habit."""

    tracker = state.app.tracker()
    habit = tracker.find_habit(habit_ref)
    series = compute_momentum(tracker.history(habit.id), window_days(window, state.today))
    for point in series:
        click.echo(f"{format_day_key(point.day)} {point.score:+d}")


@cli.command()
@click.option("--range", "window", type=click.Choice(WINDOWS), default=WINDOWS[0], show_default=True)
@pass_state
@_handle_errors
def stats(state: CliState, window: str) -> None:
    """Summarise completion over a window."""

    snap = state.app.tracker().snapshot()
    result = analytics.compute_period_stats(snap.habits, snap.completions, window_days(window, state.today))

    if result.best_day is not None:
        click.echo(f"Best day: {format_day_key(result.best_day.day)} ({result.best_day.completed} completed)")
    else:
        click.echo("Best day: -")
    click.echo(f"Completion rate: {result.display_completion_rate}%")
    if result.most_consistent is not None:
        click.echo(
            f"Most consistent: {result.most_consistent.habit.name} ({result.most_consistent.display_rate}%)"
        )
        click.echo(
            f"Least consistent: {result.least_consistent.habit.name} ({result.least_consistent.display_rate}%)"
        )
    for rate in result.habit_rates:
        click.echo(f"  {rate.habit.name}: {rate.display_rate}% ({rate.completed_days}/{len(result.days)})")


# ---------------------------------------------------------------------------
# badges & profile
# ---------------------------------------------------------------------------


@cli.command("badges")
@click.option("--check/--no-check", default=True, help="Evaluate last month before listing")
@pass_state
@_handle_errors
def badges_cmd(state: CliState, check: bool) -> None:
    """List monthly badges, checking last month first."""

    app = state.app
    user_id = app.require_user_id()
    if check:
        decision = badges.check_and_grant_monthly_badge(
            badge_repo=app.badge_repo, habit_repo=app.habit_repo, user_id=user_id, today=state.today
        )
        if decision.granted:
            click.echo(f"New badge earned for {decision.month}!")
    earned = badges.list_badges(badge_repo=app.badge_repo, user_id=user_id)
    if not earned:
        click.echo("No badges yet. Complete a perfect month to earn one.")
        return
    for badge in earned:
        click.echo(badge.month)


@cli.group()
def profile() -> None:
    """Show or edit the active profile."""


@profile.command("show")
@pass_state
@_handle_errors
def profile_show(state: CliState) -> None:
    user = state.app.current_user
    click.echo(f"User: {user.username}")
    click.echo(f"Display name: {user.display_name or '-'}")
    photo = auth.get_profile_photo(user_id=user.id, session_factory=state.app.session_factory)
    click.echo(f"Photo: {len(photo)} bytes" if photo else "Photo: -")


@profile.command("set-name")
@click.argument("display_name")
@pass_state
@_handle_errors
def profile_set_name(state: CliState, display_name: str) -> None:
    user = auth.update_profile(
        user_id=state.app.require_user_id(),
        display_name=display_name,
        session_factory=state.app.session_factory,
    )
    click.echo(f"Display name set to {user.display_name}")


@profile.command("set-photo")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@pass_state
@_handle_errors
def profile_set_photo(state: CliState, path: Path) -> None:
    blob = path.read_bytes()
    auth.set_profile_photo(
        user_id=state.app.require_user_id(), blob=blob, session_factory=state.app.session_factory
    )
    click.echo(f"Profile photo stored ({len(blob)} bytes)")


# ---------------------------------------------------------------------------
# exports
# ---------------------------------------------------------------------------


@cli.group()
def export() -> None:
    """Export history and charts."""


@export.command("completions")
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@pass_state
@_handle_errors
def export_completions(state: CliState, output: Path) -> None:
    app = state.app
    user_id = app.require_user_id()
    names = {h.id: h.name for h in app.habit_repo.list_all(user_id=user_id)}
    rows = app.habit_repo.list_completions(user_id=user_id)
    path = export_completions_csv(completions=rows, habit_names=names, output_path=output)
    click.echo(f"Export written: {path}")


@export.command("activity")
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--range", "window", type=click.Choice(WINDOWS), default=WINDOWS[0], show_default=True)
@pass_state
@_handle_errors
def export_activity(state: CliState, output: Path, window: str) -> None:
    snap = state.app.tracker().snapshot()
    counts = analytics.daily_completed_counts(snap.habits, snap.completions, window_days(window, state.today))
    path = reports.export_activity_png(counts=counts, output_path=output)
    click.echo(f"Chart written: {path}")


@export.command("momentum")
@click.argument("habit_ref")
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--range", "window", type=click.Choice(WINDOWS), default=WINDOWS[0], show_default=True)
@pass_state
@_handle_errors
def export_momentum(state: CliState, habit_ref: str, output: Path, window: str) -> None:
    tracker = state.app.tracker()
    habit = tracker.find_habit(habit_ref)
    series = compute_momentum(tracker.history(habit.id), window_days(window, state.today))
    path = reports.export_momentum_png(series=series, habit_name=habit.name, output_path=output)
    click.echo(f"Chart written: {path}")


def main() -> None:  # pragma: no cover - console entry point
    cli(prog_name="streakline")
