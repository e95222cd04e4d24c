"""Tests for the chime CLI."""

import json

import pytest

from chime.cli import build_parser, main
from chime.history import HistoryStore, Persistence


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Point HOME and XDG_CACHE_HOME into tmp_path."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    return tmp_path


@pytest.fixture
def history(home, clock, add):
    store = HistoryStore(clock=clock, persistence=Persistence())
    add(store, "Build finished", body="all green", app_name="ci")
    add(store, "New mail", body="from alice", app_name="mail")
    return store


def test_parser_commands():
    parser = build_parser()
    args = parser.parse_args(["list", "mail", "--exact", "-v"])
    assert args.command == "list"
    assert args.query == "mail"
    assert args.exact is True
    assert args.verbose is True

    args = parser.parse_args([])
    assert args.command is None


def test_list_json(history, capsys):
    main(["list", "--json"])
    items = json.loads(capsys.readouterr().out)

    assert [i["identifier"] for i in items] == ["2", "1"]
    assert items[0]["text"] == "New mail"
    assert items[0]["subtext"] == "[mail] from alice"


def test_list_search(history, capsys):
    main(["list", "alice", "--exact"])
    out = capsys.readouterr().out
    assert "[2]" in out
    assert "New mail" in out
    assert "Build finished" not in out


def test_list_verbose(history, capsys):
    main(["ls", "-v"])
    assert "[ci] all green" in capsys.readouterr().out


def test_list_empty(home, capsys):
    main(["list"])
    assert capsys.readouterr().out.strip() == "No notifications."


def test_state(history, capsys):
    main(["state"])
    assert capsys.readouterr().out.strip() == "2 notifications"

    main(["state", "--json"])
    assert json.loads(capsys.readouterr().out) == {
        "states": ["2 notifications"],
        "count": 2,
    }


def test_list_does_not_write(history, capsys):
    """Reading the history from the CLI leaves the file alone."""
    path = Persistence().path
    before = path.read_text()
    main(["list", "--json"])
    assert path.read_text() == before


def test_config_init_and_show(home, capsys):
    main(["config", "path"])
    path = capsys.readouterr().out.strip()
    assert path == str(home / ".config" / "chime" / "config.toml")

    main(["config", "show"])
    assert "No config file" in capsys.readouterr().out

    main(["config", "init"])
    capsys.readouterr()
    main(["config", "show"])
    assert "max_items = 100" in capsys.readouterr().out


def test_daemon_refuses_second_writer(home, capsys):
    """`chime daemon` exits if another chime already owns the history file."""
    owner = Persistence()
    assert owner.acquire()
    try:
        with pytest.raises(SystemExit) as excinfo:
            main(["daemon"])
    finally:
        owner.release()

    assert excinfo.value.code == 1
    assert "another chime process" in capsys.readouterr().err
