"""In-memory Atlas API for tests."""

import json
from typing import Any

import httpx

LOBBY_ID = "0b8a3c52-7f0e-4a55-9a44-3c2f5c1d2e01"
MINIGAME_ID = "5d1e9f20-2b6c-4c7e-8f3a-9e4b7a6c1d02"


class FakeAtlas:
    """In-memory Atlas API served through ``httpx.MockTransport``.

    Attributes
    ----------
    servers : dict[str, dict[str, Any]]
        Server payloads keyed by id.
    files : dict[tuple[str, str], str]
        Server file contents keyed by ``(server_id, path)``.
    templates : dict[str, str]
        Template file contents keyed by path.
    offline : bool
        When set, every request fails with 503.
    requests : list[tuple[str, str]]
        Method and path of every request received.
    """

    def __init__(self) -> None:
        self.servers: dict[str, dict[str, Any]] = {
            LOBBY_ID: {
                "serverId": LOBBY_ID,
                "name": "lobby",
                "group": "lobby",
                "type": "STATIC",
                "address": "10.0.0.10",
                "port": 25565,
            },
            MINIGAME_ID: {
                "serverId": MINIGAME_ID,
                "name": "minigame-1",
                "group": "minigames",
                "type": "DYNAMIC",
                "address": "10.0.0.11",
                "port": 25566,
            },
        }
        self.files: dict[tuple[str, str], str] = {}
        self.templates: dict[str, str] = {}
        self.offline = False
        self.requests: list[tuple[str, str]] = []

    def transport(self) -> httpx.MockTransport:
        """Return a transport routing requests to this fake."""
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        """Serve one Atlas request."""
        self.requests.append((request.method, request.url.path))
        if self.offline:
            return _error(503, "Atlas unavailable")

        parts = request.url.path.strip("/").split("/")[2:]
        if parts[0] == "servers":
            return self._servers(request, parts[1:])
        if parts[0] == "groups":
            return self._groups(request, parts[1:])
        if parts[0] == "templates":
            return self._templates(request, parts[2:])
        return _error(404, "Not found")

    def _servers(self, request: httpx.Request, parts: list[str]) -> httpx.Response:
        if not parts:
            return _ok(list(self.servers.values()))
        server = self._find(parts[0])
        if server is None:
            return _error(404, "Server not found")
        if len(parts) == 1:
            return _ok(server)
        if parts[1] in {"start", "stop", "restart"}:
            return _ok(server)

        key = server["serverId"]
        file_path = request.url.params.get("file", "")
        if parts[1:] == ["files", "contents"]:
            if request.method == "GET":
                if (key, file_path) not in self.files:
                    return _error(404, "File not found")
                return _ok({"content": self.files[(key, file_path)]})
            self.files[(key, file_path)] = _json(request)["content"]
            return _ok(None)
        if parts[1:] == ["files"] and request.method == "DELETE":
            if self.files.pop((key, file_path), None) is None:
                return _error(404, "File not found")
            return _ok(None)
        if parts[1:] == ["files", "rename"]:
            body = _json(request)
            if (key, body["oldPath"]) not in self.files:
                return _error(404, "File not found")
            self.files[(key, body["newPath"])] = self.files.pop((key, body["oldPath"]))
            return _ok(None)
        return _error(404, "Not found")

    def _groups(self, request: httpx.Request, parts: list[str]) -> httpx.Response:
        if not parts:
            return _ok(
                [
                    {"name": "lobby", "type": "STATIC", "serverCount": 1},
                    {"name": "minigames", "type": "DYNAMIC", "serverCount": 1},
                ]
            )
        if len(parts) == 2 and parts[1] == "scale":
            body = _json(request)
            return httpx.Response(
                200,
                json={
                    "status": "success",
                    "message": (
                        f"Scaled {parts[0]} {body['direction']} by {body['count']}"
                    ),
                },
            )
        return _error(404, "Not found")

    def _templates(self, request: httpx.Request, parts: list[str]) -> httpx.Response:
        file_path = request.url.params.get("file", "")
        if parts == ["contents"]:
            if request.method == "GET":
                if file_path not in self.templates:
                    return _error(404, "File not found")
                return _ok({"content": self.templates[file_path]})
            self.templates[file_path] = _json(request)["content"]
            return _ok(None)
        if not parts and request.method == "DELETE":
            if self.templates.pop(file_path, None) is None:
                return _error(404, "File not found")
            return _ok(None)
        if parts == ["rename"]:
            body = _json(request)
            if body["oldPath"] not in self.templates:
                return _error(404, "File not found")
            self.templates[body["newPath"]] = self.templates.pop(body["oldPath"])
            return _ok(None)
        return _error(404, "Not found")

    def _find(self, locator: str) -> dict[str, Any] | None:
        if locator in self.servers:
            return self.servers[locator]
        for server in self.servers.values():
            if server["name"] == locator:
                return server
        return None


def _json(request: httpx.Request) -> dict[str, Any]:
    return json.loads(request.content)


def _ok(data: Any) -> httpx.Response:
    return httpx.Response(
        200, json={"status": "success", "data": data, "timestamp": 1760000000000}
    )


def _error(status_code: int, message: str) -> httpx.Response:
    return httpx.Response(
        status_code,
        json={"status": "error", "error": message, "timestamp": 1760000000000},
    )
