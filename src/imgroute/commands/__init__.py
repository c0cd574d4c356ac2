"""Subcommand modules for imgroute.

Provides register_commands() which uses deferred imports to keep
``imgroute --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the three entity groups on the root CLI group."""
    from imgroute.commands.mappings import mappings
    from imgroute.commands.origins import origins
    from imgroute.commands.policies import policies

    cli.add_command(origins)
    cli.add_command(policies)
    cli.add_command(mappings)
