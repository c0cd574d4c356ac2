"""Rich/JSON output helpers.

The CLI renders ServiceResult for humans (Rich tables and panels) or
machines (--json). The formatter layer picks the output mode.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from imgroute.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from imgroute.services.result import ServiceResult


def format_result(
    result: ServiceResult,
    *,
    json_output: bool = False,
    quiet: bool = False,
    verbose: bool = False,
) -> str:
    """Format a ServiceResult for display.

    Args:
        result: The service result to format.
        json_output: Return the full result as indented JSON.
        quiet: Return ids only (or a one-line status).
        verbose: Include error detail and result meta.
    """
    if json_output:
        return result.model_dump_json(indent=2)
    if quiet:
        return render_quiet(result)
    return render_result(result, verbose=verbose)
