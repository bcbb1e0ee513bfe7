import pytest
from typer.testing import CliRunner

from anvbot import cli

runner = CliRunner()


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda *a, **k: None)


def test_invalid_dialect_exits_before_connecting():
    result = runner.invoke(cli.app, ["run", "--adapter", "mock", "--dialect", "oracle"])
    assert result.exit_code == 1
    assert "invalid dialect" in result.output


def test_send_with_mock_adapter():
    result = runner.invoke(cli.app, ["send", "--adapter", "mock", "--to", "6281234567890@s.whatsapp.net", "--text", "hi"])
    assert result.exit_code == 0, result.output
    assert "MOCK000001" in result.output


def test_send_rejects_bad_recipient():
    result = runner.invoke(cli.app, ["send", "--adapter", "mock", "--to", "6281234567890", "--text", "hi"])
    assert result.exit_code == 1
    assert "expected 'user@server'" in result.output


def test_json_logs_flag_reaches_command(monkeypatch):
    calls = []
    monkeypatch.setattr(cli, "setup_logging", lambda *a, **k: calls.append(k))

    result = runner.invoke(
        cli.app, ["--json-logs", "send", "--adapter", "mock", "--to", "6281234567890@s.whatsapp.net", "--text", "hi"]
    )

    assert result.exit_code == 0, result.output
    assert calls[-1]["json_logs"] is True
    assert calls[-1]["force"] is True
