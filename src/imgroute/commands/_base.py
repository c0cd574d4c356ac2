"""EntityGroup: the Click group shared by origins, policies and mappings.

Each entity group builds the same five subcommands (``list``, ``get``,
``create``, ``update``, ``delete``), each a thin call into one method
of the kind's service on :class:`AppContext`. Extra subcommands are
added with the usual ``@group.command()`` decorator.

Usage examples live in a table keyed by subcommand name. Every command
with an entry gets an eager ``--examples`` flag that prints it and
exits before the callback runs, so the database is never opened.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import click

from imgroute.commands._payload import JSON_PAYLOAD

if TYPE_CHECKING:
    from imgroute.commands._context import AppContext
    from imgroute.services.base import EntityService

CRUD_COMMANDS = ("list", "get", "create", "update", "delete")


def examples_option(examples: str) -> click.Option:
    """Eager ``--examples`` flag printing *examples* for the invoked command."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    return click.Option(
        ["--examples"],
        is_flag=True,
        expose_value=False,
        is_eager=True,
        callback=show_examples,
        help="Show usage examples.",
    )


class EntityGroup(click.Group):
    """Command group administering one entity kind.

    Args:
        name: Group name on the command line (``origins``).
        service: Name of the :class:`AppContext` property returning the
            kind's service.
        noun: Singular noun used in argument metavars (``origin``).
        examples: Examples shown by ``<group> --examples``.
        command_examples: Examples per subcommand name.
        command_help: Help text per CRUD subcommand name.
    """

    def __init__(
        self,
        name: str,
        *,
        service: str,
        noun: str,
        examples: str,
        command_examples: Mapping[str, str],
        command_help: Mapping[str, str],
        **kwargs: Any,
    ) -> None:
        super().__init__(name, **kwargs)
        self.service_name = service
        self.noun = noun
        self.command_examples = dict(command_examples)
        self.params.append(examples_option(examples))
        for command_name in CRUD_COMMANDS:
            builder = getattr(self, f"_build_{command_name}")
            self.add_command(builder(command_help[command_name]))

    def add_command(self, cmd: click.Command, name: str | None = None) -> None:
        """Register *cmd*, attaching ``--examples`` when the table has an entry."""
        examples = self.command_examples.get(name or cmd.name or "")
        if examples and not any(p.name == "examples" for p in cmd.params):
            cmd.params.append(examples_option(examples))
        super().add_command(cmd, name)

    def service(self, app: AppContext) -> EntityService[Any]:
        return getattr(app, self.service_name)

    # ── CRUD subcommands ──────────────────────────────────────────────

    @property
    def _id_argument(self) -> Any:
        return click.argument("entity_id", metavar=f"{self.noun.upper()}_ID")

    def _build_list(self, help_text: str) -> click.Command:
        @click.command("list", help=help_text)
        @click.option("--next-token", default=None, help="Token from the previous page.")
        @click.pass_obj
        def list_cmd(app: AppContext, next_token: str | None) -> None:
            app.emit(self.service(app).list(next_token))

        return list_cmd

    def _build_get(self, help_text: str) -> click.Command:
        @click.command("get", help=help_text)
        @self._id_argument
        @click.pass_obj
        def get(app: AppContext, entity_id: str) -> None:
            app.emit(self.service(app).get(entity_id))

        return get

    def _build_create(self, help_text: str) -> click.Command:
        @click.command("create", help=help_text)
        @click.argument("payload", type=JSON_PAYLOAD)
        @click.pass_obj
        def create(app: AppContext, payload: Any) -> None:
            app.emit(self.service(app).create(payload))

        return create

    def _build_update(self, help_text: str) -> click.Command:
        @click.command("update", help=help_text)
        @self._id_argument
        @click.argument("payload", type=JSON_PAYLOAD)
        @click.pass_obj
        def update(app: AppContext, entity_id: str, payload: Any) -> None:
            app.emit(self.service(app).update(entity_id, payload))

        return update

    def _build_delete(self, help_text: str) -> click.Command:
        @click.command("delete", help=help_text)
        @self._id_argument
        @click.pass_obj
        def delete(app: AppContext, entity_id: str) -> None:
            app.emit(self.service(app).delete(entity_id))

        return delete
