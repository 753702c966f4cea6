"""Tests fuer die Kommandozeile."""
import json

import httpx
import pytest

from n8nClient import n8n_client_cli as cli
from n8nClient.core.errors import N8nApiError


class FakeClient:
    """Ersetzt N8nClient; zeichnet Aufrufe auf."""

    base_url = "http://fake"

    def __init__(self, result=None, error=None):
        self.calls = []
        self.result = result
        self.error = error

    def __getattr__(self, name):
        async def _method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            if self.error is not None:
                raise self.error
            return self.result
        return _method


@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / "config.json")


@pytest.fixture
def fake(monkeypatch):
    client = FakeClient(result=[{"id": "1"}])
    monkeypatch.setattr("n8nClient.core.config.build_client", lambda config, name=None: client)
    return client


def test_version_flag(capsys):
    assert cli.main(["--version"]) == 0
    assert cli.VERSION in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 0
    assert "usage" in capsys.readouterr().out


def test_workflows_list_prints_json(fake, config_path, capsys):
    assert cli.main(["-c", config_path, "workflows", "list"]) == 0
    assert fake.calls == [("list_workflows", (), {})]
    assert json.loads(capsys.readouterr().out) == [{"id": "1"}]


def test_workflows_activate(fake, config_path):
    assert cli.main(["-c", config_path, "workflows", "activate", "w1"]) == 0
    assert fake.calls == [("activate_workflow", ("w1",), {})]


def test_workflows_execute_with_data(fake, config_path):
    assert cli.main(["-c", config_path, "workflows", "execute", "w1", "--data", '{"a": 1}']) == 0
    assert fake.calls == [("execute_workflow", ("w1", {"a": 1}), {})]


def test_workflows_get_requires_id(fake, config_path, capsys):
    assert cli.main(["-c", config_path, "workflows", "get"]) == 1
    assert fake.calls == []


def test_executions_list_passes_cursor(fake, config_path):
    assert cli.main(["-c", config_path, "executions", "list", "--limit", "10", "--last-id", "abc"]) == 0
    assert fake.calls == [("get_executions", (), {"limit": 10, "last_id": "abc"})]


def test_variables_set(fake, config_path):
    assert cli.main(["-c", config_path, "variables", "set", "KEY", "VAL"]) == 0
    assert fake.calls == [("create_variable", ({"key": "KEY", "value": "VAL"},), {})]


def test_node_types_get(fake, config_path):
    assert cli.main(["-c", config_path, "node-types", "get", "n8n-nodes-base.set"]) == 0
    assert fake.calls == [("get_node_type", ("n8n-nodes-base.set",), {})]


def test_api_error_exit_code(fake, config_path, capsys):
    fake.error = N8nApiError(404, "Not Found", "not found")
    assert cli.main(["-c", config_path, "workflows", "get", "x"]) == 1
    out = capsys.readouterr().out
    assert "404" in out and "not found" in out


def test_network_error_exit_code(fake, config_path, capsys):
    fake.error = httpx.ConnectError("refused")
    assert cli.main(["-c", config_path, "tags", "list"]) == 1
    assert "refused" in capsys.readouterr().out


def test_selftest_exit_codes(fake, config_path):
    fake.result = {"status": "ok", "message": "m", "details": {"workflowCount": 0}}
    assert cli.main(["-c", config_path, "selftest"]) == 0
    fake.result = {"status": "error", "message": "m", "details": {"error": "e"}}
    assert cli.main(["-c", config_path, "selftest"]) == 1


def test_test_command(fake, config_path, capsys):
    fake.result = True
    assert cli.main(["-c", config_path, "test"]) == 0
    assert "erreichbar" in capsys.readouterr().out


def test_missing_server_reports_config_error(config_path, monkeypatch, capsys):
    monkeypatch.delenv("N8N_BASE_URL", raising=False)
    assert cli.main(["-c", config_path, "workflows", "list"]) == 1
    assert "Kein Server" in capsys.readouterr().out


def test_servers_add_and_list(config_path, capsys):
    assert cli.main(["-c", config_path, "servers", "--add", "prod", "http://prod:5678", "key"]) == 0
    assert cli.main(["-c", config_path, "servers"]) == 0
    out = capsys.readouterr().out
    assert "prod" in out and "http://prod:5678" in out


def test_config_set_nested_value(config_path):
    assert cli.main(["-c", config_path, "config", "--set", "timeout", "20"]) == 0
    with open(config_path, encoding="utf-8") as f:
        assert json.load(f)["timeout"] == 20


def test_config_set_float_timeout_reaches_client(config_path):
    from n8nClient.core.config import build_client, load_config

    assert cli.main(["-c", config_path, "servers", "--add", "a", "http://x", "k"]) == 0
    assert cli.main(["-c", config_path, "config", "--set", "timeout", "5.5"]) == 0
    client = build_client(load_config(config_path))
    assert client.timeout == 5.5
    assert isinstance(client.timeout, float)


def test_config_set_invalid_timeout_is_rejected(config_path, capsys):
    assert cli.main(["-c", config_path, "config", "--set", "timeout", "abc"]) == 1
    assert "timeout" in capsys.readouterr().out


def test_config_set_timeout_null_clears_it(config_path):
    assert cli.main(["-c", config_path, "config", "--set", "timeout", "5"]) == 0
    assert cli.main(["-c", config_path, "config", "--set", "timeout", "null"]) == 0
    with open(config_path, encoding="utf-8") as f:
        assert json.load(f)["timeout"] is None


def test_config_set_default_server_must_exist(config_path, capsys):
    assert cli.main(["-c", config_path, "config", "--set", "default_server", "ghost"]) == 1
    assert "ghost" in capsys.readouterr().out


def test_config_set_unknown_key(config_path, capsys):
    assert cli.main(["-c", config_path, "config", "--set", "api_port", "8100"]) == 1
    assert "Unbekannter Schluessel" in capsys.readouterr().out


def test_broken_server_entry_exits_cleanly(config_path, capsys):
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump({"default_server": "a", "servers": {"a": {"api_key": "k"}}}, f)
    assert cli.main(["-c", config_path, "workflows", "list"]) == 1
    assert "ungueltig" in capsys.readouterr().out
