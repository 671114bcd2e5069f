"""Asynchronous client for the Atlas management API."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import anyio
import httpx

from atlas_client.exceptions import (
    AtlasAPIError,
    AtlasAuthError,
    AtlasConflictError,
    AtlasNotFoundError,
    AtlasRateLimitError,
    AtlasValidationError,
)
from atlas_client.types import GroupInfo, ScaleResult, ServerInfo


class AtlasClient:
    """Client for the Atlas server-management API.

    Parameters
    ----------
    base_url : str
        Atlas base URL.
    api_key : str
        Atlas bearer API key.
    timeout : float, default=10.0
        Request timeout in seconds.
    max_retries : int, default=2
        Number of retries for transient errors.
    transport : httpx.AsyncBaseTransport | None, default=None
        Optional transport for tests or advanced usage.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        max_retries: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise AtlasValidationError(
                "Atlas API key is required. Set ATLAS_PANEL_ATLAS_API_KEY."
            )
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls, settings: Any, transport: httpx.AsyncBaseTransport | None = None
    ) -> "AtlasClient":
        """Build a client from application settings.

        Parameters
        ----------
        settings : Settings
            Object exposing ``atlas_api_url``, ``atlas_api_key``,
            ``atlas_timeout_seconds`` and ``atlas_max_retries``.
        transport : httpx.AsyncBaseTransport | None, default=None
            Optional transport override.

        Returns
        -------
        AtlasClient
            Configured client.
        """
        return cls(
            base_url=settings.atlas_api_url,
            api_key=settings.atlas_api_key,
            timeout=settings.atlas_timeout_seconds,
            max_retries=settings.atlas_max_retries,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def list_servers(
        self,
        *,
        group: str | None = None,
        status: str | None = None,
        search: str | None = None,
    ) -> list[ServerInfo]:
        """List servers, optionally filtered.

        Parameters
        ----------
        group : str | None, default=None
            Group name filter.
        status : str | None, default=None
            Status filter.
        search : str | None, default=None
            Free-text filter applied by Atlas.

        Returns
        -------
        list[ServerInfo]
            Matching servers.
        """
        params = {
            key: value
            for key, value in (("group", group), ("status", status), ("search", search))
            if value
        }
        data = await self._data("GET", "/api/v1/servers", params=params)
        return [ServerInfo.from_payload(item) for item in data or []]

    async def get_server(self, server: str) -> ServerInfo:
        """Fetch one server by id or name.

        Parameters
        ----------
        server : str
            Server locator accepted by Atlas.

        Returns
        -------
        ServerInfo
            Server record.
        """
        data = await self._data("GET", _server_path(server))
        if not data:
            raise AtlasNotFoundError(f"Server {server} not found", status_code=404)
        return ServerInfo.from_payload(data)

    async def start_server(self, server: str) -> ServerInfo:
        """Start a server."""
        data = await self._data("POST", f"{_server_path(server)}/start")
        return ServerInfo.from_payload(data)

    async def stop_server(self, server: str) -> ServerInfo:
        """Stop a server."""
        data = await self._data("POST", f"{_server_path(server)}/stop")
        return ServerInfo.from_payload(data)

    async def restart_server(self, server: str) -> ServerInfo:
        """Restart a server."""
        data = await self._data("POST", f"{_server_path(server)}/restart")
        return ServerInfo.from_payload(data)

    async def list_groups(self) -> list[GroupInfo]:
        """List scaling groups.

        Returns
        -------
        list[GroupInfo]
            Known groups.
        """
        data = await self._data("GET", "/api/v1/groups")
        return [GroupInfo.from_payload(item) for item in data or []]

    async def scale_group(
        self, group: str, *, direction: str, count: int = 1
    ) -> ScaleResult:
        """Scale a group up or down.

        Parameters
        ----------
        group : str
            Group name.
        direction : str
            ``"up"`` or ``"down"``.
        count : int, default=1
            Number of servers to add or remove.

        Returns
        -------
        ScaleResult
            Atlas acknowledgement.
        """
        response = await self._request(
            "POST",
            f"/api/v1/groups/{quote(group, safe='')}/scale",
            json={"direction": direction, "count": count},
        )
        payload = response.json()
        return ScaleResult(
            status=str(payload.get("status", "")),
            message=str(payload.get("message", "")),
        )

    async def get_server_file_contents(self, server: str, path: str) -> str:
        """Read a file on a server.

        Parameters
        ----------
        server : str
            Server locator.
        path : str
            File path relative to the server root.

        Returns
        -------
        str
            File content.
        """
        data = await self._data(
            "GET", f"{_server_path(server)}/files/contents", params={"file": path}
        )
        return _content_of(data)

    async def write_server_file_contents(
        self, server: str, path: str, content: str
    ) -> None:
        """Create or replace a file on a server."""
        await self._request(
            "PUT",
            f"{_server_path(server)}/files/contents",
            params={"file": path},
            json={"content": content},
        )

    async def delete_server_file(self, server: str, path: str) -> None:
        """Delete a file on a server."""
        await self._request(
            "DELETE", f"{_server_path(server)}/files", params={"file": path}
        )

    async def rename_server_file(
        self, server: str, *, old_path: str, new_path: str
    ) -> None:
        """Rename a file on a server."""
        await self._request(
            "POST",
            f"{_server_path(server)}/files/rename",
            json={"oldPath": old_path, "newPath": new_path},
        )

    async def get_template_file_contents(self, path: str) -> str:
        """Read a global template file.

        Parameters
        ----------
        path : str
            File path relative to the template root.

        Returns
        -------
        str
            File content.
        """
        data = await self._data(
            "GET", "/api/v1/templates/files/contents", params={"file": path}
        )
        return _content_of(data)

    async def write_template_file_contents(self, path: str, content: str) -> None:
        """Create or replace a template file."""
        await self._request(
            "PUT",
            "/api/v1/templates/files/contents",
            params={"file": path},
            json={"content": content},
        )

    async def delete_template_file(self, path: str) -> None:
        """Delete a template file."""
        await self._request("DELETE", "/api/v1/templates/files", params={"file": path})

    async def rename_template_file(self, *, old_path: str, new_path: str) -> None:
        """Rename a template file."""
        await self._request(
            "POST",
            "/api/v1/templates/files/rename",
            json={"oldPath": old_path, "newPath": new_path},
        )

    async def _data(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and unwrap the ``data`` member of the envelope."""
        response = await self._request(method, path, **kwargs)
        payload = response.json()
        if isinstance(payload, dict):
            return payload.get("data")
        return payload

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send an HTTP request with light retry logic.

        Parameters
        ----------
        method : str
            HTTP method.
        path : str
            Relative request path.
        **kwargs : Any
            Additional request arguments.

        Returns
        -------
        httpx.Response
            Successful response.
        """
        attempts = self.max_retries + 1
        last_exception: Exception | None = None
        for attempt in range(attempts):
            try:
                response = await self._client.request(method, path, **kwargs)
            except httpx.HTTPError as exc:
                last_exception = exc
                if attempt < self.max_retries:
                    await anyio.sleep(0.1 * (attempt + 1))
                    continue
                raise AtlasAPIError(f"Atlas API Error: {exc}") from exc

            if response.status_code < 400:
                return response
            if _is_transient_response(response) and attempt < self.max_retries:
                await anyio.sleep(0.1 * (attempt + 1))
                continue
            raise _exception_for_response(response)

        if last_exception is not None:
            raise AtlasAPIError(
                f"Atlas API Error: {last_exception}"
            ) from last_exception
        raise AtlasAPIError("Atlas API Error: request failed")

    async def __aenter__(self) -> "AtlasClient":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        _ = (exc_type, exc_value, traceback)
        await self.aclose()


def _server_path(server: str) -> str:
    return f"/api/v1/servers/{quote(server, safe='')}"


def _content_of(data: Any) -> str:
    """Extract file content from a contents response.

    Parameters
    ----------
    data : Any
        ``data`` member of the Atlas envelope.

    Returns
    -------
    str
        File content, empty for an empty file.
    """
    if isinstance(data, dict):
        return str(data.get("content") or "")
    if data is None:
        return ""
    return str(data)


def _is_transient_response(response: httpx.Response) -> bool:
    """Return whether a response is worth retrying.

    Parameters
    ----------
    response : httpx.Response
        HTTP response.

    Returns
    -------
    bool
        Whether the status is transient.
    """
    return response.status_code in {429, 502, 503, 504}


def _exception_for_response(response: httpx.Response) -> AtlasAPIError:
    """Map an error response to a typed client exception.

    Parameters
    ----------
    response : httpx.Response
        HTTP response.

    Returns
    -------
    AtlasAPIError
        Typed client error.
    """
    try:
        data = response.json()
    except ValueError:
        data = {}
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        error = error.get("message") or error.get("error")
    detail = error or response.reason_phrase or response.status_code
    message = f"Atlas API Error: {detail}"

    if response.status_code == 401:
        return AtlasAuthError(message, status_code=response.status_code)
    if response.status_code == 404:
        return AtlasNotFoundError(message, status_code=response.status_code)
    if response.status_code == 409:
        return AtlasConflictError(message, status_code=response.status_code)
    if response.status_code == 429:
        return AtlasRateLimitError(message, status_code=response.status_code)
    if response.status_code in {400, 403, 422}:
        return AtlasValidationError(message, status_code=response.status_code)
    return AtlasAPIError(message, status_code=response.status_code)
