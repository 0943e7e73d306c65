from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from rowgraph.cli import main
from rowgraph.config import RowgraphSettings, get_settings, reset_settings


def test_compile_prints_sql_and_params(capsys):
    assert main(["compile", "users", "--where", '{"name": "Luis"}']) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "SELECT * FROM `users` WHERE `name` = ? LIMIT ? OFFSET ?;"
    assert json.loads(out[1]) == ["Luis", 1000, 0]


def test_compile_count(capsys):
    assert main(["compile", "users", "--count", "--options", '{"count_by": "id"}']) == 0
    assert capsys.readouterr().out.splitlines()[0] == "SELECT COUNT(`id`) AS `total` FROM `users`;"


def test_compile_reports_bad_filters(capsys):
    assert main(["compile", "users", "--where", '{"$or": 1}']) == 1
    assert "error:" in capsys.readouterr().err


def test_migrate_and_rollback_on_file(tmp_path, capsys):
    database = str(tmp_path / "app.db")
    ref = "tests.helpers.migrations:MIGRATIONS"
    assert main(["migrate", ref, "--database", database]) == 0
    assert "Applied 2 migration(s)" in capsys.readouterr().out
    assert main(["rollback", ref, "--database", database]) == 0
    assert "Rolled back add_note_index" in capsys.readouterr().out


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("ROWGRAPH_LOG_LEVEL", "debug")
    monkeypatch.setenv("ROWGRAPH_DEFAULT_PAGE_SIZE", "25")
    reset_settings()
    settings = get_settings()
    assert settings.log_level == "DEBUG"
    assert settings.default_page_size == 25
    assert get_settings() is settings


def test_settings_reject_unknown_log_level():
    with pytest.raises(ValidationError):
        RowgraphSettings(log_level="chatty")
