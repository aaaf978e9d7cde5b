"""Unit tests for the CLI — command registration and end-to-end command runs.

Commands run through typer.testing.CliRunner against a FakeBackend behind
``ApiClient.from_config``; the log socket and selector are replaced with
doubles.
"""

from __future__ import annotations

import json
import sys

import httpx
import pytest
from typer.testing import CliRunner

from conftest import (
    CANCELLED,
    FINISHED_FRAME,
    FakeConnection,
    FakeSelector,
    chosen,
    entry_op,
    envelope,
    json_response,
    patch_frame,
    sequence_route,
)

from vkcli.bridge.log_socket import LogStreamConnectError
from vkcli.cli.app import COMMANDS, app, main
from vkcli.cli.commands import pick as pick_module
from vkcli.cli.commands import show as show_module
from vkcli.cli.commands.pick import preview_command
from vkcli.config import config

runner = CliRunner()


@pytest.fixture(autouse=True)
def _fast_loops(monkeypatch):
    monkeypatch.setattr(config, "status_poll_interval_seconds", 0.0)
    monkeypatch.setattr(config, "discovery_delay_seconds", 0.0)


TASK_DETAIL = {
    "id": "t1",
    "title": "Fix login",
    "status": "inprogress",
    "description": "Users cannot log in",
    "created_at": "2025-01-01T00:00:00Z",
    "updated_at": "2025-01-02T00:00:00Z",
}


def _refuse(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    """The CLI must register every command in the command table."""

    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for entry in COMMANDS:
            assert entry.name in result.output

    @pytest.mark.parametrize("name", ["projects", "list", "show", "exec", "status", "pick"])
    def test_command_exists(self, name):
        result = runner.invoke(app, [name, "--help"])
        assert result.exit_code == 0

    def test_preview_command_runs_show(self):
        assert preview_command().endswith("-m vkcli show {1} --with-messages")


class TestMain:
    """The console-script entry point maps usage errors to exit code 1."""

    def test_missing_argument(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["vkcli", "status"])
        with pytest.raises(SystemExit) as excinfo:
            main()
        assert excinfo.value.code == 1

    def test_unknown_command(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["vkcli", "frobnicate"])
        with pytest.raises(SystemExit) as excinfo:
            main()
        assert excinfo.value.code == 1

    def test_command_error_exits_one(self, monkeypatch, patch_api):
        patch_api()
        monkeypatch.setattr(sys, "argv", ["vkcli", "list", "p1"])
        with pytest.raises(SystemExit) as excinfo:
            main()
        assert excinfo.value.code == 1

    def test_success_returns(self, monkeypatch, patch_api):
        patch_api({("GET", "/projects"): json_response(envelope([]))})
        monkeypatch.setattr(sys, "argv", ["vkcli", "projects"])
        assert main() is None


# ---------------------------------------------------------------------------
# Test: projects / list
# ---------------------------------------------------------------------------


class TestListings:
    def test_projects(self, patch_api):
        patch_api({("GET", "/projects"): json_response(envelope([{"id": "p1", "name": "Alpha"}]))})
        result = runner.invoke(app, ["projects"])
        assert result.exit_code == 0
        assert "p1" in result.output
        assert "Alpha" in result.output

    def test_no_projects(self, patch_api):
        patch_api({("GET", "/projects"): json_response([])})
        result = runner.invoke(app, ["projects"])
        assert result.exit_code == 0
        assert "No projects found." in result.output

    def test_projects_transport_error(self, patch_api):
        patch_api({("GET", "/projects"): _refuse})
        result = runner.invoke(app, ["projects"])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_list(self, patch_api):
        backend = patch_api(
            {("GET", "/tasks"): json_response(envelope([{"id": "t1", "title": "Fix login", "status": "todo"}]))}
        )
        result = runner.invoke(app, ["list", "p1"])
        assert result.exit_code == 0
        assert "Fix login" in result.output
        assert "todo" in result.output
        assert backend.requests[0].url.params["project_id"] == "p1"

    def test_list_empty(self, patch_api):
        patch_api({("GET", "/tasks"): json_response(envelope([]))})
        result = runner.invoke(app, ["list", "p1"])
        assert result.exit_code == 0
        assert "No tasks found for this project." in result.output

    def test_list_http_error(self, patch_api):
        patch_api()
        result = runner.invoke(app, ["list", "p1"])
        assert result.exit_code == 1
        assert "Error:" in result.output


# ---------------------------------------------------------------------------
# Test: show
# ---------------------------------------------------------------------------


class TestShowCommand:
    def _routes(self, attempts, processes):
        return {
            ("GET", "/tasks/t1"): json_response(envelope(TASK_DETAIL)),
            ("GET", "/task-attempts"): json_response(envelope(attempts)),
            ("GET", "/execution-processes"): json_response(envelope(processes)),
        }

    def _stream(self, monkeypatch, connection):
        opened: list[str] = []

        def _factory(ws_base_url, process_id, *, open_timeout):
            opened.append(process_id)
            return lambda: connection

        monkeypatch.setattr(show_module, "log_socket_factory", _factory)
        return opened

    def test_detail(self, patch_api):
        patch_api(self._routes([], []))
        result = runner.invoke(app, ["show", "t1"])
        assert result.exit_code == 0
        for text in ("Fix login", "inprogress", "Users cannot log in", "2025-01-02T00:00:00Z"):
            assert text in result.output
        assert "Latest Attempt ID" not in result.output

    def test_with_messages(self, patch_api, monkeypatch):
        backend = patch_api(
            self._routes(
                [{"id": "a0"}, {"id": "a1"}],
                [{"id": "e1", "executor_action": {"typ": {"prompt": "Please fix the login"}}}],
            )
        )
        connection = FakeConnection(
            [
                patch_frame(entry_op("add", 0, "tool_use", "grep -r login")),
                patch_frame(entry_op("add", 1, "assistant_message", "working")),
                patch_frame(entry_op("replace", 1, "assistant_message", "Login fixed")),
                FINISHED_FRAME,
            ]
        )
        opened = self._stream(monkeypatch, connection)

        result = runner.invoke(app, ["show", "t1", "--with-messages"])
        assert result.exit_code == 0
        output = result.output
        assert "Latest Attempt ID: a1" in output
        assert "Process ID: e1" in output
        assert "Please fix the login" in output
        assert "── > grep -r login" in output
        assert "Login fixed" in output
        assert "working" not in output
        assert opened == ["e1"]
        assert connection.closed
        process_request = [r for r in backend.requests if r.url.path.endswith("/execution-processes")][0]
        assert process_request.url.params["task_attempt_id"] == "a1"

    def test_no_attempts(self, patch_api):
        patch_api(self._routes([], []))
        result = runner.invoke(app, ["show", "t1", "-m"])
        assert result.exit_code == 0
        assert "No attempts found." in result.output

    def test_no_processes(self, patch_api):
        patch_api(self._routes([{"id": "a1"}], []))
        result = runner.invoke(app, ["show", "t1", "-m"])
        assert result.exit_code == 0
        assert "(no execution processes found)" in result.output

    def test_stream_connect_error(self, patch_api, monkeypatch):
        patch_api(self._routes([{"id": "a1"}], [{"id": "e1"}]))

        def _factory(ws_base_url, process_id, *, open_timeout):
            def _open():
                raise LogStreamConnectError("error connecting WS")

            return _open

        monkeypatch.setattr(show_module, "log_socket_factory", _factory)
        result = runner.invoke(app, ["show", "t1", "-m"])
        assert result.exit_code == 1
        assert "error connecting WS" in result.output

    def test_missing_task(self, patch_api):
        patch_api()
        result = runner.invoke(app, ["show", "nope"])
        assert result.exit_code == 1
        assert "Error:" in result.output


# ---------------------------------------------------------------------------
# Test: exec
# ---------------------------------------------------------------------------


class TestExecCommand:
    def test_echoed_attempt_id(self, patch_api):
        backend = patch_api(
            {
                ("POST", "/tasks/t1/attempts"): json_response(envelope({"id": "att-1"})),
                ("GET", "/task-attempts/att-1"): sequence_route(
                    json_response({"status": "running"}),
                    json_response({"status": "in-review"}),
                    json_response({"status": "done"}),
                ),
            }
        )
        result = runner.invoke(app, ["exec", "t1", "--executor", "CLAUDE_CODE", "-b", "main"])
        assert result.exit_code == 0, result.output
        assert "Started attempt: att-1" in result.output
        assert "Attempt att-1 status: DONE" in result.output
        assert json.loads(backend.requests[0].content) == {
            "executor": "CLAUDE_CODE",
            "base_branch": "main",
        }
        assert backend.paths().count("/task-attempts/att-1") == 3

    def test_discovers_attempt(self, patch_api):
        patch_api(
            {
                ("POST", "/tasks/t1/attempts"): json_response(envelope(None)),
                ("GET", "/task-attempts"): sequence_route(
                    json_response(envelope([])),
                    json_response(envelope([{"id": "att-8"}, {"id": "att-9"}])),
                ),
                ("GET", "/task-attempts/att-9"): json_response({"status": "failed"}),
            }
        )
        result = runner.invoke(app, ["exec", "t1"])
        assert result.exit_code == 0, result.output
        assert "Started attempt: att-9" in result.output
        assert "Attempt att-9 status: FAILED" in result.output

    def test_discovery_exhausted(self, patch_api, monkeypatch):
        monkeypatch.setattr(config, "discovery_max_attempts", 2)
        patch_api(
            {
                ("POST", "/tasks/t1/attempts"): json_response({}),
                ("GET", "/task-attempts"): json_response(envelope([])),
            }
        )
        result = runner.invoke(app, ["exec", "t1"])
        assert result.exit_code == 1
        assert "no attempt found for task t1" in result.output

    def test_create_fails(self, patch_api):
        patch_api()
        result = runner.invoke(app, ["exec", "t1"])
        assert result.exit_code == 1
        assert "Error:" in result.output


# ---------------------------------------------------------------------------
# Test: status
# ---------------------------------------------------------------------------


class TestStatusCommand:
    def test_task(self, patch_api):
        patch_api({("GET", "/tasks/t1"): json_response(envelope({"id": "t1", "status": "inreview"}))})
        result = runner.invoke(app, ["status", "t1"])
        assert result.exit_code == 0
        assert "Task t1 status: INREVIEW" in result.output

    def test_attempt_via_branch_status(self, patch_api):
        patch_api(
            {
                ("GET", "/task-attempts/a1"): json_response(envelope({"id": "a1", "task_id": "t1"})),
                ("GET", "/task-attempts/a1/branch-status"): json_response(
                    {"data": {"branch_status": "in-review"}}
                ),
            }
        )
        result = runner.invoke(app, ["status", "a1"])
        assert result.exit_code == 0
        assert "Attempt a1 status: IN_REVIEW" in result.output

    def test_unknown_is_not_an_error(self, patch_api):
        patch_api()
        result = runner.invoke(app, ["status", "zzz"])
        assert result.exit_code == 0
        assert "Attempt zzz status: UNKNOWN" in result.output

    def test_backend_down(self, patch_api):
        patch_api(
            {
                ("GET", "/tasks/x"): _refuse,
                ("GET", "/task-attempts/x"): _refuse,
                ("GET", "/task-attempts/x/branch-status"): _refuse,
            }
        )
        result = runner.invoke(app, ["status", "x"])
        assert result.exit_code == 0
        assert "Attempt x status: UNKNOWN" in result.output


# ---------------------------------------------------------------------------
# Test: pick
# ---------------------------------------------------------------------------


class TestPickCommand:
    ROUTES = {
        ("GET", "/projects"): json_response(envelope([{"id": "p1", "name": "Alpha"}])),
        ("GET", "/tasks"): json_response(envelope([{"id": "t1", "title": "Fix login", "status": "todo"}])),
        ("GET", "/tasks/t1"): json_response(envelope(TASK_DETAIL)),
    }

    def _selector(self, monkeypatch, results):
        selector = FakeSelector(results)
        monkeypatch.setattr(pick_module, "FzfSelector", lambda binary: selector)
        return selector

    def test_selector_missing(self, monkeypatch):
        monkeypatch.setattr(config, "selector_binary", "vkcli-no-such-selector-binary")
        result = runner.invoke(app, ["pick"])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_pick_shows_task(self, patch_api, monkeypatch):
        patch_api(self.ROUTES)
        selector = self._selector(monkeypatch, [chosen("p1\tAlpha"), chosen("t1\t[todo] Fix login")])
        result = runner.invoke(app, ["pick"])
        assert result.exit_code == 0, result.output
        assert "Users cannot log in" in result.output
        task_args = selector.calls[1][2]
        assert task_args[task_args.index("--preview") + 1] == preview_command()

    def test_cancel(self, patch_api, monkeypatch):
        patch_api(self.ROUTES)
        self._selector(monkeypatch, [CANCELLED])
        result = runner.invoke(app, ["pick"])
        assert result.exit_code == 0
        assert "Selection cancelled." in result.output

    def test_no_projects(self, patch_api, monkeypatch):
        patch_api({("GET", "/projects"): json_response(envelope([]))})
        self._selector(monkeypatch, [])
        result = runner.invoke(app, ["pick"])
        assert result.exit_code == 0
        assert "No projects found." in result.output
