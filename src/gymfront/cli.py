"""CLI entry point for gymfront."""

import logging

import click

from .commands import (
    achievements,
    admin,
    google_login,
    login,
    logout,
    measurements,
    password_reset,
    profile,
    rank,
    register,
    routines,
    whoami,
)


@click.group()
@click.version_option(version="0.1.0", prog_name="gymfront")
@click.option("--verbose", "-v", is_flag=True, help="Log requests and session changes")
def main(verbose: bool):
    """gymfront: client for the gym tracking service.

    Sign in once, then check your weekly rank, your achievements and your
    completed routines from the terminal.

    Example usage:

        # Sign in (prompts for credentials)
        gymfront login

        # Log today's workout and see your rank
        gymfront routines complete 12 --minutes 45 --effort 7
        gymfront rank

        # Review achievements
        gymfront achievements list

        # Record body measurements
        gymfront measurements add --weight 72.5 --waist 80
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Register commands
main.add_command(login)
main.add_command(google_login)
main.add_command(register)
main.add_command(logout)
main.add_command(whoami)
main.add_command(profile)
main.add_command(password_reset)
main.add_command(rank)
main.add_command(achievements)
main.add_command(routines)
main.add_command(measurements)
main.add_command(admin)


def run():
    """Run the CLI."""
    main()


if __name__ == "__main__":
    run()
