"""Command group: origins (upstream image sources)."""

from __future__ import annotations

from imgroute.commands._base import EntityGroup

_ID = "1b4e28ba-2fa1-4d3b-a3f5-ef19b5a7633b"
_ASSETS = '\'{"originName": "assets", "originDomain": "assets.example.com"}\''

origins = EntityGroup(
    "origins",
    service="origins",
    noun="origin",
    help="Manage origins: the upstream sources images are fetched from.",
    examples=f"""\
  imgroute origins list
  imgroute origins create {_ASSETS}
  imgroute origins update {_ID} '{{"originPath": "/images"}}'
  imgroute --json origins get {_ID}""",
    command_examples={
        "list": """\
  imgroute origins list
  imgroute origins list --next-token eyJwayI6Ii4uLiJ9
  imgroute -q origins list""",
        "get": f"  imgroute origins get {_ID}",
        "create": f"""\
  imgroute origins create {_ASSETS}
  imgroute origins create @origin.json
  cat origin.json | imgroute origins create -""",
        "update": f"""  imgroute origins update {_ID} '{{"originName": "cdn"}}'""",
        "delete": f"  imgroute origins delete {_ID}",
    },
    command_help={
        "list": "List origins by name, one page at a time.",
        "get": "Show one origin.",
        "create": "Create an origin from a JSON PAYLOAD.",
        "update": "Change fields of an origin; unspecified fields are kept.",
        "delete": "Delete an origin no mapping refers to.",
    },
)
