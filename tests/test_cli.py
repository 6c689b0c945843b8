"""Tests for the command-line entry point."""

import json
import logging

import pytest
import structlog

from location_resolver import cli
from location_resolver.config import ObservabilityConfig
from location_resolver.logging_config import configure_logging, json_formatter


@pytest.fixture
def cli_env(monkeypatch, dataset_config, tmp_path):
    monkeypatch.setenv("LOCRES_DATA_DATA_DIR", str(dataset_config.data_dir))
    monkeypatch.setenv("LOCRES_CACHE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setattr(cli, "configure_logging", lambda config: None)


def test_lookup_prints_one_json_line_per_query(cli_env, capsys):
    assert cli.main(["lookup", "Toronto", "SFO"]) == 0

    lines = capsys.readouterr().out.splitlines()
    first, second = (json.loads(line) for line in lines)
    assert first["query"] == "Toronto"
    assert first["iataCode"] == "YTO"
    assert first["airportCodes"] == ["YYZ", "YTZ"]
    assert second["iataCode"] == "SFO"


def test_lookup_airport_mode(cli_env, capsys):
    assert cli.main(["lookup", "--airport", "Toronto"]) == 0

    assert json.loads(capsys.readouterr().out)["iataCode"] == "YYZ"


def test_unresolved_query_exits_nonzero(cli_env, capsys):
    assert cli.main(["lookup", "xqzw", "SFO"]) == 1

    captured = capsys.readouterr()
    assert json.loads(captured.err)["query"] == "xqzw"
    assert json.loads(captured.out)["iataCode"] == "SFO"


def test_purge_cache_reports_deleted_rows(cli_env, capsys):
    cli.main(["lookup", "Toronto"])
    capsys.readouterr()

    assert cli.main(["purge-cache", "--older-than-days", "0"]) == 0
    assert json.loads(capsys.readouterr().out) == {"deleted": 1}


def test_command_is_required():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


def test_json_formatter_keeps_extra_fields():
    record = logging.makeLogRecord(
        {"name": "resolver", "levelname": "INFO", "msg": "Repository match", "iata_code": "YTO"}
    )

    payload = json.loads(json_formatter().format(record))

    assert payload["message"] == "Repository match"
    assert payload["level"] == "info"
    assert payload["logger"] == "resolver"
    assert payload["iata_code"] == "YTO"
    assert "args" not in payload


def test_configure_logging_installs_one_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging(ObservabilityConfig(level="debug", structured=True))

        assert len(root.handlers) == 1
        assert isinstance(
            root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter
        )
        assert root.level == logging.DEBUG
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
