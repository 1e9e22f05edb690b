"""Administration commands (administrator accounts only)."""

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


def print_users(users) -> None:
    if not users:
        echo_info("No users.")
        return
    rows = [
        [
            str(u.id),
            u.full_name,
            u.email,
            "yes" if u.is_admin else "",
            "yes" if u.is_active else "no",
        ]
        for u in users
    ]
    click.echo()
    click.echo(format_table(["ID", "Name", "Email", "Admin", "Active"], rows))


@click.group()
def admin():
    """Manage the service (administrators only)."""
    pass


@admin.command()
@click.pass_context
@async_command
async def stats(ctx: click.Context):
    """Show the dashboard counters."""
    async with open_context() as context:
        ensure_authenticated(ctx, context)
        try:
            s = await context.admin.fetch_stats()
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)

        click.echo()
        click.echo(click.style("Dashboard", bold=True))
        click.echo("=" * 40)
        click.echo(f"Users: {s.total_users} ({s.active_users} active, {s.total_admins} admins)")
        click.echo(f"New today: {s.registered_today}  This month: {s.registered_this_month}")
        click.echo(f"Workouts: {s.total_workouts} ({s.public_workouts} public)")
        click.echo(f"Exercises: {s.total_exercises}")


@admin.group()
def users():
    """List, create, edit and delete accounts."""
    pass


@users.command(name="list")
@click.pass_context
@async_command
async def list_users(ctx: click.Context):
    """List every account."""
    async with open_context() as context:
        ensure_authenticated(ctx, context)
        try:
            items = await context.admin.fetch_users()
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)
        print_users(items)


@users.command()
@click.option("--email", "-e", required=True, help="Account email")
@click.option("--name", "-n", required=True, help="First name")
@click.option("--surname", "-s", required=True, help="Last name")
@click.option("--admin", "is_admin", is_flag=True, help="Grant administrator rights")
@click.password_option()
@click.pass_context
@async_command
async def create(
    ctx: click.Context, email: str, name: str, surname: str, is_admin: bool, password: str
):
    """Create an account."""
    async with open_context() as context:
        ensure_authenticated(ctx, context)
        try:
            await context.admin.create_user(email, password, name, surname, is_admin=is_admin)
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)
        echo_success(f"Account created for {email}")


@users.command()
@click.argument("user_id", type=int)
@click.option("--name", help="First name")
@click.option("--surname", help="Last name")
@click.option("--email", help="Email")
@click.option("--admin/--no-admin", "is_admin", default=None, help="Administrator rights")
@click.option("--active/--inactive", "is_active", default=None, help="Whether the account may sign in")
@click.pass_context
@async_command
async def update(ctx: click.Context, user_id: int, **fields):
    """Edit USER_ID."""
    changes = {k: v for k, v in fields.items() if v is not None}
    if not changes:
        echo_info("Nothing to update.")
        return

    async with open_context() as context:
        ensure_authenticated(ctx, context)
        try:
            await context.admin.update_user(user_id, **changes)
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)
        echo_success(f"User {user_id} updated.")


@users.command()
@click.argument("user_id", type=int)
@click.option("--force", "-f", is_flag=True, help="Skip confirmation")
@click.pass_context
@async_command
async def delete(ctx: click.Context, user_id: int, force: bool):
    """Delete USER_ID."""
    if not force and not click.confirm(f"Delete user {user_id}?"):
        echo_info("Cancelled")
        return

    async with open_context() as context:
        ensure_authenticated(ctx, context)
        try:
            await context.admin.delete_user(user_id)
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)
        echo_success(f"User {user_id} deleted.")
