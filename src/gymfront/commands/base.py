"""Shared CLI utilities."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import wraps

import click

from ..config import load_settings
from ..context import GymFrontContext, build_context
from ..db.tiers import TerminalTier


def async_command(f):
    """Decorator to run async Click commands."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))

    return wrapper


@asynccontextmanager
async def open_context(verify_session: bool = True) -> AsyncIterator[GymFrontContext]:
    """Build the context and restore any stored session.

    Unremembered sessions are kept in a tier scoped to the calling
    terminal, so they last across commands typed in the same shell.
    """
    context = build_context(load_settings(), ephemeral=TerminalTier())
    try:
        if verify_session:
            await context.session.init()
        else:
            context.session.restore()
        yield context
    finally:
        await context.aclose()


def ensure_authenticated(ctx: click.Context, context: GymFrontContext) -> None:
    """Exit unless a session is active."""
    if not context.session.is_authenticated:
        click.echo(
            click.style("Error: ", fg="red")
            + "Not signed in. Run 'gymfront login' first."
        )
        ctx.exit(1)


def echo_success(message: str) -> None:
    """Print a success message."""
    click.echo(click.style("[OK] ", fg="green") + message)


def echo_error(message: str) -> None:
    """Print an error message."""
    click.echo(click.style("[ERROR] ", fg="red") + message)


def echo_info(message: str) -> None:
    """Print an info message."""
    click.echo(click.style("[INFO] ", fg="blue") + message)


def echo_warning(message: str) -> None:
    """Print a warning message."""
    click.echo(click.style("[WARN] ", fg="yellow") + message)


def format_table(headers: list[str], rows: list[list[str]], padding: int = 2) -> str:
    """Format data as a simple table."""
    if not rows:
        return ""

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(str(cell)))

    lines = ["".join(h.ljust(widths[i] + padding) for i, h in enumerate(headers))]
    lines.append("".join("-" * w + " " * padding for w in widths))
    for row in rows:
        lines.append("".join(str(cell).ljust(widths[i] + padding) for i, cell in enumerate(row)))

    return "\n".join(line.rstrip() for line in lines)


def progress_bar(percentage: float, width: int = 20) -> str:
    """Render a percentage as a text bar."""
    filled = int(round(max(0.0, min(100.0, percentage)) / 100 * width))
    return "[" + "#" * filled + "-" * (width - filled) + f"] {percentage:.0f}%"


def echo_not_remembered() -> None:
    """Tell the user the session ends with this terminal."""
    echo_info("Session not remembered; it lasts until this terminal is closed.")
