from __future__ import annotations

from typing import Any

import pytest

from pysatisfactory import __main__ as cli
from pysatisfactory.web import ENGINE_KEY


def test_missing_host_exits_with_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SATISFACTORY_HOST", raising=False)

    assert cli.main([]) == 2


def test_cli_arguments_override_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SATISFACTORY_HOST", "env-host")
    monkeypatch.delenv("SATISFACTORY_LISTEN_HOST", raising=False)
    captured: dict[str, Any] = {}

    def _fake_run_app(app: Any, *, host: str, port: int, print: Any) -> None:  # noqa: A002
        captured["app"] = app
        captured["host"] = host
        captured["port"] = port

    monkeypatch.setattr(cli.web, "run_app", _fake_run_app)

    assert cli.main(["--host", "cli-host", "--listen-port", "9000", "--log-level", "DEBUG"]) == 0

    engine = captured["app"][ENGINE_KEY]
    assert engine.config.host == "cli-host"
    assert captured["host"] == "0.0.0.0"
    assert captured["port"] == 9000
