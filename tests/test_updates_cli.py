from __future__ import annotations

import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

import updates_cli


@pytest.fixture
def settings_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setattr(updates_cli, "configure_logging", lambda *args, **kwargs: tmp_path / "test.log")
    for name in (
        "DAILY_UPDATES_SHEETS_ID",
        "DAILY_UPDATES_API_KEY",
        "DAILY_UPDATES_WEBAPP_URL",
        "DAILY_UPDATES_FORM_URL",
        "DAILY_UPDATES_STORE_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"store_path": str(tmp_path / "local_store.json"), "open_browser": False}),
        encoding="utf-8",
    )
    return path


def test_add_then_list_uses_local_cache(settings_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = updates_cli.main(
        ["--settings", str(settings_file), "add", "--account", "Acme", "--project", "Alpha", "--remarks", "Kick-off"]
    )
    assert exit_code == 0
    assert "kept locally" in capsys.readouterr().out

    assert updates_cli.main(["--settings", str(settings_file), "list", "--json"]) == 0
    records = json.loads(capsys.readouterr().out)
    assert len(records) == 1
    assert records[0]["accountName"] == "Acme"
    assert records[0]["sn"] == 1
    assert records[0]["id"].startswith("local_")


def test_update_and_delete_local_record(settings_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    updates_cli.main(["--settings", str(settings_file), "add", "--account", "Acme", "--project", "Alpha"])
    capsys.readouterr()
    updates_cli.main(["--settings", str(settings_file), "list", "--json"])
    record_id = json.loads(capsys.readouterr().out)[0]["id"]

    assert updates_cli.main(["--settings", str(settings_file), "update", record_id, "--remarks", "done"]) == 0
    assert json.loads(capsys.readouterr().out)["remarks"] == "done"

    assert updates_cli.main(["--settings", str(settings_file), "delete", record_id]) == 0
    capsys.readouterr()
    updates_cli.main(["--settings", str(settings_file), "list"])
    assert "No daily updates recorded yet." in capsys.readouterr().out


def test_add_rejects_blank_account(settings_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = updates_cli.main(["--settings", str(settings_file), "add", "--account", " ", "--project", "Alpha"])

    assert exit_code == 1
    assert "Error:" in capsys.readouterr().err


def test_update_requires_changes(settings_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert updates_cli.main(["--settings", str(settings_file), "update", "local_1"]) == 1
    assert "nothing to update" in capsys.readouterr().err


def test_probe_without_configuration_fails(settings_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert updates_cli.main(["--settings", str(settings_file), "probe"]) == 1
    assert "Sheet access failed" in capsys.readouterr().err


def test_list_table_shows_newest_first(settings_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    for project in ("First", "Second"):
        updates_cli.main(["--settings", str(settings_file), "add", "--account", "Acme", "--project", project])
    capsys.readouterr()

    updates_cli.main(["--settings", str(settings_file), "list"])
    output = capsys.readouterr().out

    assert output.index("Second") < output.index("First")
