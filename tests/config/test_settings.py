"""Tests for RouteSettings: TOML, env vars and CLI flags."""

from __future__ import annotations

from pathlib import Path

import click
import pytest
from pydantic import ValidationError

from imgroute.config.models import TableConfig
from imgroute.config.settings import RouteSettings


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = RouteSettings.from_cli(root=tmp_path)
        assert settings.root == tmp_path
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.table == TableConfig()
        assert settings.db_path == tmp_path / ".imgroute" / "config.db"

    def test_frozen(self, tmp_path: Path) -> None:
        settings = RouteSettings.from_cli(root=tmp_path)
        with pytest.raises(ValidationError):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_sparse_override(self, tmp_path: Path) -> None:
        (tmp_path / "imgroute.toml").write_text("[table]\npage_size = 10\n")
        settings = RouteSettings.from_cli(root=tmp_path)
        assert settings.table.page_size == 10
        assert settings.table.busy_timeout == 5.0

    def test_root_follows_discovered_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "imgroute.toml").write_text('[table]\npath = "data/routes.db"\n')
        nested = tmp_path / "sub"
        nested.mkdir()
        monkeypatch.chdir(nested)
        settings = RouteSettings.from_cli()
        assert settings.root.resolve() == tmp_path.resolve()
        assert settings.db_path.resolve() == (tmp_path / "data" / "routes.db").resolve()

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "my.toml"
        custom.parent.mkdir()
        custom.write_text("[table]\npage_size = 3\n")
        settings = RouteSettings.from_cli(config_path=str(custom), root=tmp_path)
        assert settings.table.page_size == 3
        assert settings.config_path == custom

    def test_absolute_table_path(self, tmp_path: Path) -> None:
        db = tmp_path / "elsewhere.db"
        (tmp_path / "imgroute.toml").write_text(f'[table]\npath = "{db.as_posix()}"\n')
        assert RouteSettings.from_cli(root=tmp_path).db_path == db

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "imgroute.toml").write_text("[table\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            RouteSettings.from_cli(root=tmp_path)

    def test_unknown_table_key(self, tmp_path: Path) -> None:
        (tmp_path / "imgroute.toml").write_text("[table]\nshards = 4\n")
        with pytest.raises(ValidationError):
            RouteSettings.from_cli(root=tmp_path)

    def test_out_of_range_page_size(self, tmp_path: Path) -> None:
        (tmp_path / "imgroute.toml").write_text("[table]\npage_size = 0\n")
        with pytest.raises(ValidationError):
            RouteSettings.from_cli(root=tmp_path)


class TestPriority:
    def test_env_beats_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "imgroute.toml").write_text("[table]\npage_size = 10\n")
        monkeypatch.setenv("IMGROUTE_TABLE__PAGE_SIZE", "20")
        assert RouteSettings.from_cli(root=tmp_path).table.page_size == 20

    def test_cli_flags_beat_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("IMGROUTE_QUIET", "false")
        settings = RouteSettings.from_cli(root=tmp_path, quiet=True)
        assert settings.quiet is True

    def test_env_flag(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("IMGROUTE_JSON_OUTPUT", "1")
        assert RouteSettings.from_cli(root=tmp_path).json_output is True
