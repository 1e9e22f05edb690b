"""Rank, achievement and completed-routine commands."""

from datetime import datetime

import click

from ..errors import GymFrontError
from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    echo_warning,
    ensure_authenticated,
    format_table,
    open_context,
    progress_bar,
)


@click.command()
@click.option("--fallback", "-f", is_flag=True, help="Compute the rank locally from the weekly summary")
@click.pass_context
@async_command
async def rank(ctx: click.Context, fallback: bool):
    """Show your current training rank."""
    async with open_context() as context:
        ensure_authenticated(ctx, context)
        engine = context.ranks

        if fallback:
            user_rank = await engine.get_fallback_rank()
        else:
            user_rank = await engine.get_current_user_rank()

        if user_rank is None:
            echo_error(engine.error or "Could not determine your rank.")
            ctx.exit(1)

        click.echo()
        click.echo(click.style(f"Rank: {user_rank.rank_name}", bold=True))
        click.echo("=" * 40)
        click.echo(f"Week {user_rank.week_number}: {user_rank.days_trained_this_week} day(s) trained")
        click.echo(f"Progress: {progress_bar(user_rank.progress_to_next_rank)}")
        if user_rank.days_to_next_rank > 0:
            click.echo(f"{user_rank.days_to_next_rank} more day(s) to reach the next rank")
        else:
            echo_success("Top of your band this week!")

        click.echo()
        click.echo(click.style("All ranks:", bold=True))
        for r in engine.all_ranks():
            prefix = ">" if r.id == user_rank.rank_id else " "
            days = (
                f"{r.min_days_per_week}"
                if r.min_days_per_week == r.max_days_per_week
                else f"{r.min_days_per_week}-{r.max_days_per_week}"
            )
            click.echo(f"  {prefix} {r.name}: {days} day(s)/week")


@click.group()
def achievements():
    """Browse and re-evaluate achievements."""
    pass


@achievements.command(name="list")
@click.option("--category", "-c", help="Only show one category")
@click.pass_context
@async_command
async def list_achievements(ctx: click.Context, category: str | None):
    """List your achievements grouped by category."""
    async with open_context() as context:
        ensure_authenticated(ctx, context)
        tracker = context.achievements
        items = await tracker.fetch_user_achievements()

        if tracker.error:
            echo_error(tracker.error)
            ctx.exit(1)
        if not items:
            echo_info("No achievements available yet.")
            return

        for name, group in tracker.by_category.items():
            if category and name.lower() != category.lower():
                continue
            click.echo()
            click.echo(click.style(name or "General", bold=True))
            rows = [
                [
                    "x" if a.is_unlocked else " ",
                    "???" if a.is_secret and not a.is_unlocked else a.name,
                    f"{a.current_progress}/{a.target_value}",
                    str(a.experience),
                ]
                for a in group
            ]
            click.echo(format_table(["", "Achievement", "Progress", "XP"], rows))

        click.echo()
        click.echo(f"Experience: {tracker.total_experience} XP")
        click.echo(f"Completed: {progress_bar(tracker.completion_percentage)}")


@achievements.command()
@click.option("--count", "-n", default=5, show_default=True, help="How many to show")
@click.pass_context
@async_command
async def recent(ctx: click.Context, count: int):
    """Show recently unlocked achievements."""
    async with open_context() as context:
        ensure_authenticated(ctx, context)
        tracker = context.achievements
        items = await tracker.fetch_recent(count)

        if tracker.error:
            echo_error(tracker.error)
            ctx.exit(1)
        if not items:
            echo_info("No achievements unlocked yet.")
            return

        rows = [
            [
                a.unlocked_date.strftime("%Y-%m-%d") if a.unlocked_date else "N/A",
                a.name,
                str(a.experience),
            ]
            for a in items
        ]
        click.echo()
        click.echo(format_table(["Unlocked", "Achievement", "XP"], rows))


@achievements.command()
@click.pass_context
@async_command
async def verify(ctx: click.Context):
    """Ask the server to check for newly unlocked achievements."""
    async with open_context() as context:
        ensure_authenticated(ctx, context)
        tracker = context.achievements
        try:
            await tracker.verify_achievements()
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)

        echo_success("Achievements checked.")
        for a in tracker.recent:
            click.echo(f"  - {a.name} (+{a.experience} XP)")


@click.group()
def routines():
    """Log and review completed routines."""
    pass


@routines.command()
@click.pass_context
@async_command
async def summary(ctx: click.Context):
    """Show completion statistics."""
    async with open_context() as context:
        ensure_authenticated(ctx, context)
        try:
            s = await context.routines.fetch_summary()
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)

        click.echo()
        click.echo(click.style("Completed routines", bold=True))
        click.echo("=" * 40)
        click.echo(f"Total: {s.total_completed}")
        click.echo(f"Last week: {s.completed_last_week}")
        click.echo(f"Last month: {s.completed_last_month}")
        click.echo(f"Average effort: {s.average_effort:.1f}")
        click.echo(f"Minutes: {s.total_minutes}  Calories: {s.total_calories}")
        if s.most_repeated_workout_name:
            click.echo(
                f"Favourite: {s.most_repeated_workout_name} ({s.times_completed or 0} times)"
            )


@routines.command(name="list")
@click.option("--workout", "-w", type=int, help="Only completions of this workout")
@click.pass_context
@async_command
async def list_routines(ctx: click.Context, workout: int | None):
    """List completed routines."""
    async with open_context() as context:
        ensure_authenticated(ctx, context)
        store = context.routines
        try:
            if workout is not None:
                items = await store.list_for_workout(workout)
            else:
                items = await store.fetch_all()
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)

        if not items:
            echo_info("No completed routines yet.")
            return

        rows = [
            [
                str(r.id),
                r.completed_at.strftime("%Y-%m-%d") if r.completed_at else "N/A",
                r.workout_name or str(r.workout_id),
                str(r.duration_minutes or ""),
                str(r.perceived_effort or ""),
            ]
            for r in items
        ]
        click.echo()
        click.echo(format_table(["ID", "Date", "Workout", "Minutes", "Effort"], rows))


@routines.command()
@click.argument("workout_id", type=int)
@click.option("--minutes", "-m", type=int, help="Duration in minutes")
@click.option("--calories", type=int, help="Estimated calories")
@click.option("--effort", type=click.IntRange(1, 10), help="Perceived effort (1-10)")
@click.option("--notes", help="Free-form notes")
@click.pass_context
@async_command
async def complete(
    ctx: click.Context,
    workout_id: int,
    minutes: int | None,
    calories: int | None,
    effort: int | None,
    notes: str | None,
):
    """Mark WORKOUT_ID as completed today."""
    async with open_context() as context:
        ensure_authenticated(ctx, context)
        try:
            routine = await context.routines.complete(
                workout_id,
                completed_at=datetime.now(),
                notes=notes,
                duration_minutes=minutes,
                estimated_calories=calories,
                perceived_effort=effort,
            )
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)

        echo_success(f"Routine {routine.id} logged.")

        try:
            await context.achievements.verify_achievements()
        except GymFrontError as e:
            echo_warning(f"Could not check achievements: {e.message}")
            return
        for a in context.achievements.recent:
            if a.unlocked_date and a.unlocked_date.date() == datetime.now().date():
                click.echo(f"  Unlocked: {a.name} (+{a.experience} XP)")
