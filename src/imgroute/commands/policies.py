"""Command group: transformation policies."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from imgroute.commands._base import EntityGroup

if TYPE_CHECKING:
    from imgroute.commands._context import AppContext

_ID = "6f1c2d3e-4b5a-4c6d-8e7f-9a0b1c2d3e4f"
_POLICY_PAYLOAD = (
    '\'{"policyName": "thumbs", "policyJSON": '
    '{"transformations": [{"transformation": "resize", "value": {"width": 200}}]}}\''
)

policies = EntityGroup(
    "policies",
    service="policies",
    noun="policy",
    help="Manage transformation policies; at most one is the default.",
    examples=f"""\
  imgroute policies list
  imgroute policies create @thumbnail.json
  imgroute policies update {_ID} '{{"isDefault": true}}'
  imgroute policies default""",
    command_examples={
        "list": """\
  imgroute policies list
  imgroute --json policies list --next-token eyJwayI6Ii4uLiJ9""",
        "get": f"""\
  imgroute policies get {_ID}
  imgroute -v policies get {_ID}""",
        "create": f"""\
  imgroute policies create {_POLICY_PAYLOAD}
  imgroute policies create @policy.json""",
        "update": f"""\
  imgroute policies update {_ID} '{{"isDefault": false}}'
  imgroute policies update {_ID} @policy.json""",
        "delete": f"  imgroute policies delete {_ID}",
        "default": """\
  imgroute policies default
  imgroute -q policies default""",
    },
    command_help={
        "list": "List policies by name, one page at a time.",
        "get": "Show one policy (-v shows the full policy document).",
        "create": "Create a policy from a JSON PAYLOAD.",
        "update": "Change fields of a policy; setting isDefault moves the default claim.",
        "delete": "Delete a policy no mapping refers to.",
    },
)


@policies.command()
@click.pass_obj
def default(app: AppContext) -> None:
    """Show the default policy."""
    app.emit(app.policies.get_default())
