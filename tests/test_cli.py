"""Tests for the tunestream command."""

import sys
import tomllib

import pytest

from tunestream import cli
from tunestream.core.config import parse_config


def run(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["tunestream", *args])
    with pytest.raises(SystemExit) as exc:
        cli.main()
    return exc.value.code


def test_init_config_writes_default(tmp_path, monkeypatch):
    path = tmp_path / "config.toml"
    monkeypatch.setenv("TUNESTREAM_CONFIG", str(path))

    assert run(monkeypatch, "init-config") == 0
    assert "[server]" in path.read_text(encoding="utf-8")


def test_init_config_keeps_existing(tmp_path, monkeypatch, capsys):
    path = tmp_path / "config.toml"
    path.write_text("[server]\nport = 9000\n", encoding="utf-8")
    monkeypatch.setenv("TUNESTREAM_CONFIG", str(path))

    assert run(monkeypatch, "init-config") == 1
    assert "already exists" in capsys.readouterr().err

    assert run(monkeypatch, "init-config", "--force") == 0
    assert "port = 8000" in path.read_text(encoding="utf-8")


def test_serve_rejects_invalid_config(tmp_path, monkeypatch):
    path = tmp_path / "config.toml"
    path.write_text("[server]\nport = 70000\n", encoding="utf-8")
    monkeypatch.setenv("TUNESTREAM_CONFIG", str(path))

    assert run(monkeypatch, "serve", "--config", str(path)) == 1


def test_no_subcommand_prints_help(monkeypatch, capsys):
    assert run(monkeypatch) == 1
    assert "serve" in capsys.readouterr().out


def test_default_config_is_valid():
    parse_config(tomllib.loads(cli.create_default_config())).validate()
