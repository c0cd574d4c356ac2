"""Shared pytest fixtures and payload builders for imgroute tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from imgroute.infrastructure.database import ConfigTable, init_database
from imgroute.services import MappingService, OriginService, PolicyService

SMALL_PAGE = 2


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's IMGROUTE_* environment out of every test."""
    for name in (
        "IMGROUTE_CONFIG",
        "IMGROUTE_ROOT",
        "IMGROUTE_JSON_OUTPUT",
        "IMGROUTE_QUIET",
        "IMGROUTE_VERBOSE",
        "IMGROUTE_LOG_JSON",
        "IMGROUTE_TABLE__PATH",
        "IMGROUTE_TABLE__PAGE_SIZE",
        "IMGROUTE_TABLE__BUSY_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def table(tmp_path: Path) -> Iterator[ConfigTable]:
    """Initialized configuration table on a temp SQLite file."""
    t = ConfigTable(init_database(tmp_path / "config.db"))
    try:
        yield t
    finally:
        t.close()


@pytest.fixture
def origins(table: ConfigTable) -> OriginService:
    return OriginService(table, page_size=SMALL_PAGE)


@pytest.fixture
def policies(table: ConfigTable) -> PolicyService:
    return PolicyService(table, page_size=SMALL_PAGE)


@pytest.fixture
def mappings(table: ConfigTable) -> MappingService:
    return MappingService(table, page_size=SMALL_PAGE)


@pytest.fixture
def _isolated_workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp dir so the CLI creates an isolated database.

    Use via ``@pytest.mark.usefixtures("_isolated_workspace")`` on command
    test classes.
    """
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------


def origin_payload(name: str = "assets", **overrides: Any) -> dict[str, Any]:
    return {"originName": name, "originDomain": "assets.example.com", **overrides}


def policy_payload(name: str = "thumbs", **overrides: Any) -> dict[str, Any]:
    return {
        "policyName": name,
        "policyJSON": {
            "transformations": [{"transformation": "resize", "value": {"width": 200}}],
            "outputs": [{"type": "format", "value": "auto"}],
        },
        **overrides,
    }


def mapping_payload(origin_id: str, name: str = "thumbs", **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"mappingName": name, "originId": origin_id, **overrides}
    if "hostHeaderPattern" not in payload and "pathPattern" not in payload:
        payload["pathPattern"] = "/thumbs/*"
    return payload
