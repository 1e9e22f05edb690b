"""Body measurement commands."""

from datetime import datetime

import click

from ..errors import GymFrontError
from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    ensure_authenticated,
    format_table,
    open_context,
)


def _fmt(value, suffix: str = "") -> str:
    return f"{value:g}{suffix}" if isinstance(value, (int, float)) else ""


def measurement_options(f):
    """Options shared by ``add`` and ``update``."""
    options = [
        click.option("--weight", type=float, help="Body weight in kg"),
        click.option("--height", type=float, help="Height in cm"),
        click.option("--body-fat", type=click.FloatRange(0, 100), help="Body fat percentage"),
        click.option("--arm", type=float, help="Arm circumference in cm"),
        click.option("--chest", type=float, help="Chest circumference in cm"),
        click.option("--waist", type=float, help="Waist circumference in cm"),
        click.option("--thigh", type=float, help="Thigh circumference in cm"),
        click.option("--notes", help="Free-form notes"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


@click.group()
def measurements():
    """Track body measurements."""
    pass


@measurements.command(name="list")
@click.pass_context
@async_command
async def list_measurements(ctx: click.Context):
    """List your measurements, newest first."""
    async with open_context() as context:
        ensure_authenticated(ctx, context)
        try:
            items = await context.measurements.fetch_all()
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)

        if not items:
            echo_info("No measurements recorded yet.")
            return

        rows = [
            [
                str(m.id),
                m.date.strftime("%Y-%m-%d") if m.date else "N/A",
                _fmt(m.weight),
                _fmt(m.bmi),
                _fmt(m.body_fat, "%"),
                _fmt(m.waist),
            ]
            for m in items
        ]
        click.echo()
        click.echo(format_table(["ID", "Date", "Weight", "BMI", "Fat", "Waist"], rows))


@measurements.command()
@click.pass_context
@async_command
async def summary(ctx: click.Context):
    """Show monthly averages."""
    async with open_context() as context:
        ensure_authenticated(ctx, context)
        try:
            months = await context.measurements.fetch_summary()
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)

        if not months:
            echo_info("No measurements recorded yet.")
            return

        rows = [
            [
                f"{m.year}-{m.month:02d}",
                _fmt(m.average_weight),
                _fmt(m.average_bmi),
                _fmt(m.average_body_fat, "%"),
                _fmt(m.average_waist),
            ]
            for m in months
        ]
        click.echo()
        click.echo(format_table(["Month", "Weight", "BMI", "Fat", "Waist"], rows))


@measurements.command()
@measurement_options
@click.pass_context
@async_command
async def add(ctx: click.Context, **fields):
    """Record today's measurements."""
    values = {k: v for k, v in fields.items() if v is not None}
    if not values:
        echo_error("Give at least one measurement.")
        ctx.exit(1)

    async with open_context() as context:
        ensure_authenticated(ctx, context)
        try:
            m = await context.measurements.create(date=datetime.now(), **values)
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)

        echo_success(f"Measurement {m.id} recorded.")
        if m.bmi is not None:
            click.echo(f"  BMI: {m.bmi:.1f}")


@measurements.command()
@click.argument("measurement_id", type=int)
@measurement_options
@click.pass_context
@async_command
async def update(ctx: click.Context, measurement_id: int, **fields):
    """Correct MEASUREMENT_ID."""
    values = {k: v for k, v in fields.items() if v is not None}
    if not values:
        echo_info("Nothing to update.")
        return

    async with open_context() as context:
        ensure_authenticated(ctx, context)
        try:
            await context.measurements.update(measurement_id, **values)
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)
        echo_success(f"Measurement {measurement_id} updated.")


@measurements.command()
@click.argument("measurement_id", type=int)
@click.option("--force", "-f", is_flag=True, help="Skip confirmation")
@click.pass_context
@async_command
async def delete(ctx: click.Context, measurement_id: int, force: bool):
    """Delete MEASUREMENT_ID."""
    if not force and not click.confirm(f"Delete measurement {measurement_id}?"):
        echo_info("Cancelled")
        return

    async with open_context() as context:
        ensure_authenticated(ctx, context)
        try:
            await context.measurements.delete(measurement_id)
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)
        echo_success(f"Measurement {measurement_id} deleted.")
