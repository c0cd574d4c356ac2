"""Command group: mappings (path or host-header routing rules)."""

from __future__ import annotations

from imgroute.commands._base import EntityGroup

_ID = "0d6e4f6a-8c1b-4f3e-9a2d-7b5c3e1f0a9d"
_ORIGIN_ID = "1b4e28ba-2fa1-4d3b-a3f5-ef19b5a7633b"

mappings = EntityGroup(
    "mappings",
    service="mappings",
    noun="mapping",
    help="Manage mappings: route a path or host pattern to an origin and policy.",
    examples=f"""\
  imgroute mappings list
  imgroute mappings create @thumbs-mapping.json
  imgroute mappings delete {_ID}""",
    command_examples={
        "list": """\
  imgroute mappings list
  imgroute mappings list --next-token eyJwYXRoIjp7fX0=""",
        "get": f"  imgroute mappings get {_ID}",
        "create": f"""\
  imgroute mappings create '{{"mappingName": "thumbs", "pathPattern": "/thumbs/*", \
"originId": "{_ORIGIN_ID}"}}'
  imgroute mappings create '{{"mappingName": "cdn", "hostHeaderPattern": "*.example.com", \
"originId": "{_ORIGIN_ID}"}}'""",
        "update": f"""  imgroute mappings update {_ID} '{{"pathPattern": "/small/*"}}'""",
        "delete": f"  imgroute mappings delete {_ID}",
    },
    command_help={
        "list": "List path mappings then host-header mappings, a page at a time.",
        "get": "Show one mapping.",
        "create": "Create a mapping from a JSON PAYLOAD with exactly one pattern.",
        "update": "Change fields of a mapping; its pattern kind cannot change.",
        "delete": "Delete a mapping.",
    },
)
