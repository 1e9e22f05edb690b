"""Authentication and profile commands."""

from pathlib import Path

import click
import questionary
from questionary import Style

from ..errors import GymFrontError
from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_not_remembered,
    echo_success,
    ensure_authenticated,
    open_context,
)

prompt_style = Style(
    [
        ("qmark", "fg:#673ab7 bold"),
        ("question", "bold"),
        ("answer", "fg:#f44336 bold"),
        ("instruction", ""),
        ("text", ""),
    ]
)


@click.command()
@click.option("--email", "-e", help="Account email")
@click.option("--password", "-p", help="Account password (prompted if omitted)")
@click.option(
    "--remember/--no-remember",
    default=True,
    help="Keep the session after this terminal is closed",
)
@click.pass_context
@async_command
async def login(ctx: click.Context, email: str | None, password: str | None, remember: bool):
    """Sign in with email and password."""
    if not email:
        email = await questionary.text("Email:", style=prompt_style).ask_async()
    if not password:
        password = await questionary.password("Password:", style=prompt_style).ask_async()
    if not email or not password:
        echo_error("Email and password are required.")
        ctx.exit(1)

    async with open_context(verify_session=False) as context:
        try:
            user, is_admin = await context.session.login(email, password, remember=remember)
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)

        role = " (admin)" if is_admin else ""
        echo_success(f"Signed in as {user.full_name} <{user.email}>{role}")
        if not remember:
            echo_not_remembered()


@click.command("google-login")
@click.argument("id_token")
@click.pass_context
@async_command
async def google_login(ctx: click.Context, id_token: str):
    """Sign in with a Google ID token (the session is never remembered)."""
    async with open_context(verify_session=False) as context:
        try:
            user, _ = await context.session.oauth_login(id_token)
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)
        echo_success(f"Signed in with Google as {user.full_name} <{user.email}>")
        echo_not_remembered()


@click.command()
@click.option("--email", "-e", required=True, help="Account email")
@click.option("--name", "-n", required=True, help="First name")
@click.option("--surname", "-s", required=True, help="Last name")
@click.password_option()
@click.pass_context
@async_command
async def register(ctx: click.Context, email: str, name: str, surname: str, password: str):
    """Create an account and sign in to it."""
    async with open_context(verify_session=False) as context:
        try:
            user, _ = await context.session.register(email, password, name, surname)
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)
        echo_success(f"Account created for {user.full_name} <{user.email}>")
        echo_not_remembered()


@click.command()
@async_command
async def logout():
    """Forget the stored session."""
    async with open_context(verify_session=False) as context:
        context.session.logout()
    echo_success("Signed out.")


@click.command()
@click.pass_context
@async_command
async def whoami(ctx: click.Context):
    """Show the signed-in user."""
    async with open_context() as context:
        ensure_authenticated(ctx, context)
        session = context.session
        user = session.user

        click.echo()
        click.echo(click.style(user.full_name, bold=True))
        click.echo("=" * 40)
        click.echo(f"Email: {user.email}")
        click.echo(f"Sign-in: {'Google' if session.is_oauth_linked else 'email/password'}")
        click.echo(f"Admin: {'yes' if session.is_admin else 'no'}")
        if user.registration_date:
            click.echo(f"Member since: {user.registration_date.strftime('%Y-%m-%d')}")
        if user.photo_url:
            click.echo(f"Photo: {user.photo_url}")


@click.group()
def profile():
    """Edit the signed-in user's profile."""
    pass


@profile.command("update")
@click.option("--name", help="First name")
@click.option("--surname", help="Last name")
@click.option("--email", help="New email")
@click.option("--age", type=int, help="Age in years")
@click.option("--weight", type=float, help="Body weight in kg")
@click.option("--height", type=float, help="Height in cm")
@click.pass_context
@async_command
async def update_profile(ctx: click.Context, **fields):
    """Update profile fields."""
    changes = {k: v for k, v in fields.items() if v is not None}
    if not changes:
        echo_info("Nothing to update.")
        return

    async with open_context() as context:
        ensure_authenticated(ctx, context)
        try:
            user = await context.session.update_profile(**changes)
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)
        echo_success(f"Profile updated for {user.full_name}")


@profile.command("photo")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
@async_command
async def upload_photo(ctx: click.Context, path: Path):
    """Upload a new profile photo."""
    async with open_context() as context:
        ensure_authenticated(ctx, context)
        try:
            url = await context.session.update_profile_photo(path.read_bytes(), path.name)
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)
        echo_success(f"Profile photo updated: {url}")


@profile.command("remove-photo")
@click.pass_context
@async_command
async def remove_photo(ctx: click.Context):
    """Remove the profile photo."""
    async with open_context() as context:
        ensure_authenticated(ctx, context)
        try:
            await context.session.remove_profile_photo()
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)
        echo_success("Profile photo removed.")


@click.group("password-reset")
def password_reset():
    """Recover a forgotten password."""
    pass


@password_reset.command("request")
@click.argument("email")
@click.pass_context
@async_command
async def request_reset(ctx: click.Context, email: str):
    """Send a reset email to EMAIL."""
    async with open_context(verify_session=False) as context:
        try:
            await context.session.request_password_reset(email)
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)
        echo_success(f"If {email} has an account, a reset email is on its way.")


@password_reset.command("confirm")
@click.argument("token")
@click.password_option()
@click.pass_context
@async_command
async def confirm_reset(ctx: click.Context, token: str, password: str):
    """Set a new password using the TOKEN from the reset email."""
    async with open_context(verify_session=False) as context:
        try:
            await context.session.reset_password(token, password, password)
        except GymFrontError as e:
            echo_error(e.message)
            ctx.exit(1)
        echo_success("Password changed. You can sign in now.")
