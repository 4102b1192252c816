import datetime
import json
import re

import pytest

from gtdkit.inbox import append_to_inbox, format_inbox_line, main
from gtdkit.model import CONFIG_FILE_NAME, TaskDates


def test_format_inbox_line():
    line = format_inbox_line("buy milk", datetime.date(2024, 1, 2))
    assert line == "\n- buy milk @d2024-01-02"


def test_append_to_inbox(tmp_path):
    inbox = tmp_path / "inbox.md"
    inbox.write_text("# Inbox")
    line = append_to_inbox(inbox, "call bob", datetime.date(2023, 12, 31))
    assert inbox.read_text() == "# Inbox" + line
    assert line.startswith("\n- call bob @d")


def test_append_twice_keeps_order(tmp_path):
    inbox = tmp_path / "inbox.md"
    inbox.write_text("")
    first = append_to_inbox(inbox, "one")
    second = append_to_inbox(inbox, "two")
    assert inbox.read_text() == first + second


def test_append_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        append_to_inbox(tmp_path / "missing.md", "x")


def test_main_appends_message(tmp_path, monkeypatch, capsys):
    inbox = tmp_path / "inbox.md"
    inbox.write_text("start")
    (tmp_path / CONFIG_FILE_NAME).write_text(json.dumps({"inbox_path": str(inbox)}))
    monkeypatch.setenv("HOME", str(tmp_path))

    assert main(["water", "the", "plants"]) == 0

    content = inbox.read_text()
    assert re.fullmatch(r"start\n- water the plants @d\d{4}-\d{2}-\d{2}", content)
    assert "- water the plants @d" in capsys.readouterr().out


def test_main_line_has_no_task_date_tag(tmp_path, monkeypatch):
    inbox = tmp_path / "inbox.md"
    inbox.write_text("")
    (tmp_path / CONFIG_FILE_NAME).write_text(json.dumps({"inbox_path": str(inbox)}))
    monkeypatch.setenv("HOME", str(tmp_path))
    main(["note"])
    # dashes in the date keep it from reading as an 8-digit task date tag
    assert TaskDates.extract_dates(inbox.read_text()) is None


def test_main_without_inbox_path_exits(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    with pytest.raises(SystemExit) as info:
        main(["hello"])
    assert info.value.code == "inbox_path must exist in config"


def test_main_requires_message(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    with pytest.raises(SystemExit) as info:
        main([])
    assert info.value.code == 2