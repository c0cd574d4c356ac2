"""PAYLOAD argument: inline JSON, ``@file.json``, or ``-`` for stdin."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click


class JsonPayload(click.ParamType):
    """Parse a request body from the command line.

    The parsed value is passed to the service untouched; shape checks
    belong to the validators.
    """

    name = "payload"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> Any:
        if not isinstance(value, str):
            return value
        if value == "-":
            text = click.get_text_stream("stdin").read()
            source = "stdin"
        elif value.startswith("@"):
            path = Path(value[1:])
            try:
                text = path.read_text(encoding="utf-8")
            except OSError as exc:
                self.fail(f"Cannot read payload file {path}: {exc.strerror}", param, ctx)
            source = str(path)
        else:
            text = value
            source = "argument"
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            self.fail(f"Invalid JSON in {source}: {exc}", param, ctx)


JSON_PAYLOAD = JsonPayload()
