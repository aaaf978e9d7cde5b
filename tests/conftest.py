"""Shared test fixtures for vkcli."""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from typing import Any

import httpx
import pytest

from vkcli.bridge.api_client import ApiClient
from vkcli.bridge.selector import SelectionResult

TEST_BASE_URL = "http://test/api"


# ---------------------------------------------------------------------------
# HTTP doubles
# ---------------------------------------------------------------------------


Route = httpx.Response | Callable[[httpx.Request], httpx.Response]


class FakeBackend:
    """httpx.MockTransport handler routing on ``(method, path)``.

    Paths are given without the ``/api`` prefix.  Unrouted requests get a
    404.  Every request is recorded in ``requests``.
    """

    def __init__(self, routes: dict[tuple[str, str], Route] | None = None) -> None:
        self.routes: dict[tuple[str, str], Route] = dict(routes or {})
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api")
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, httpx.Response):
            return route
        return route(request)

    def paths(self) -> list[str]:
        return [r.url.path.removeprefix("/api") for r in self.requests]


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload)


def envelope(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data, "message": None}


def sequence_route(*responses: httpx.Response) -> Callable[[httpx.Request], httpx.Response]:
    """Route answering with *responses* in order, repeating the last one."""
    remaining = list(responses)

    def _route(request: httpx.Request) -> httpx.Response:
        if len(remaining) > 1:
            return remaining.pop(0)
        return remaining[0]

    return _route


@pytest.fixture
def make_client() -> Callable[..., tuple[ApiClient, FakeBackend]]:
    """Factory fixture: an ApiClient wired to a FakeBackend."""
    clients: list[ApiClient] = []

    def _factory(
        routes: dict[tuple[str, str], Route] | None = None,
    ) -> tuple[ApiClient, FakeBackend]:
        backend = FakeBackend(routes)
        client = ApiClient(TEST_BASE_URL, transport=httpx.MockTransport(backend))
        clients.append(client)
        return client, backend

    yield _factory

    for client in clients:
        client.close()


@pytest.fixture
def patch_api(monkeypatch: pytest.MonkeyPatch) -> Callable[..., FakeBackend]:
    """Make ``ApiClient.from_config`` return clients bound to a FakeBackend."""

    def _install(routes: dict[tuple[str, str], Route] | None = None) -> FakeBackend:
        backend = FakeBackend(routes)

        def _from_config(cls, cfg):
            return cls(TEST_BASE_URL, transport=httpx.MockTransport(backend))

        monkeypatch.setattr(ApiClient, "from_config", classmethod(_from_config))
        return backend

    return _install


# ---------------------------------------------------------------------------
# Log stream doubles
# ---------------------------------------------------------------------------


class FakeConnection:
    """Message connection replaying scripted frames.

    Items that are exceptions are raised from ``recv``.  When the script
    runs out, *end* is raised (a remote close by default).
    """

    def __init__(
        self,
        messages: Sequence[str | bytes | BaseException],
        *,
        end: BaseException | None = None,
    ) -> None:
        self.messages = list(messages)
        self._end = end if end is not None else ConnectionError("connection closed")
        self.timeouts: list[float | None] = []
        self.closed = False

    def recv(self, timeout: float | None = None) -> str | bytes:
        self.timeouts.append(timeout)
        if not self.messages:
            raise self._end
        item = self.messages.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


def entry_op(op: str, index: int | str, kind: str, text: str) -> dict[str, Any]:
    return {
        "op": op,
        "path": f"/entries/{index}",
        "value": {
            "type": "NORMALIZED_ENTRY",
            "content": {"entry_type": {"type": kind}, "content": text},
        },
    }


def patch_frame(*ops: dict[str, Any]) -> str:
    return json.dumps({"JsonPatch": list(ops)})


FINISHED_FRAME = json.dumps({"finished": True})


# ---------------------------------------------------------------------------
# Selector double
# ---------------------------------------------------------------------------


class FakeSelector:
    """Selector returning scripted results and recording each round."""

    def __init__(self, results: Sequence[SelectionResult]) -> None:
        self.results = list(results)
        self.calls: list[tuple[str, list[str], list[str]]] = []

    def select(
        self,
        prompt: str,
        lines: Sequence[str],
        extra_args: Sequence[str] = (),
    ) -> SelectionResult:
        self.calls.append((prompt, list(lines), list(extra_args)))
        return self.results.pop(0)


def chosen(line: str, key: str = "") -> SelectionResult:
    return SelectionResult(selection=line, key=key)


CANCELLED = SelectionResult(cancelled=True)
