"""AppContext: shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Provides lazy table initialization, per-kind
services, and centralized result emission (stdout/stderr routing + exit
codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from imgroute.config.logging import configure_logging
from imgroute.output.formatters import format_result

if TYPE_CHECKING:
    from imgroute.config.settings import RouteSettings
    from imgroute.infrastructure.database import ConfigTable
    from imgroute.services import MappingService, OriginService, PolicyService
    from imgroute.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The table is opened on first use so ``--help``, ``--version`` and
    ``--examples`` never touch the database.
    """

    def __init__(self, settings: RouteSettings) -> None:
        self.settings = settings
        self._table: ConfigTable | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def table(self) -> ConfigTable:
        """The configuration table (created lazily on first access)."""
        if self._table is None:
            from imgroute.infrastructure.database import ConfigTable, init_database

            engine = init_database(
                self.settings.db_path, busy_timeout=self.settings.table.busy_timeout
            )
            self._table = ConfigTable(engine)
            ctx = click.get_current_context(silent=True)
            if ctx is not None:
                ctx.call_on_close(self._table.close)
        return self._table

    @property
    def origins(self) -> OriginService:
        from imgroute.services import OriginService

        return OriginService(self.table, page_size=self.settings.table.page_size)

    @property
    def policies(self) -> PolicyService:
        from imgroute.services import PolicyService

        return PolicyService(self.table, page_size=self.settings.table.page_size)

    @property
    def mappings(self) -> MappingService:
        from imgroute.services import MappingService

        return MappingService(self.table, page_size=self.settings.table.page_size)

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        output = format_result(
            result,
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not self.settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
