from __future__ import annotations

import json
import shlex
import time
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Callable, Sequence

import httpx

from intune_assign.auth.types import AccessToken
from intune_assign.graph.errors import (
    GraphAPIError,
    GraphErrorCategory,
    error_from_response,
)
from intune_assign.graph.requests import V1_VERSION, GraphRequest
from intune_assign.utils import get_logger


logger = get_logger(__name__)


TokenProvider = Callable[[Sequence[str]], AccessToken]

GRAPH_ROOT = "https://graph.microsoft.com"

# Longest request body quoted in a repro command.
_CLI_BODY_LIMIT = 800


@dataclass(slots=True)
class GraphTelemetryEvent:
    method: str
    url: str
    status_code: int | None
    duration_ms: float
    category: GraphErrorCategory | None

    @property
    def success(self) -> bool:
        return self.category is None


@dataclass(slots=True)
class GraphClientConfig:
    scopes: Sequence[str]
    api_version: str = V1_VERSION
    user_agent: str = "intune-app-assign"
    timeout: float = 60.0
    telemetry_callback: Callable[[GraphTelemetryEvent], None] | None = None


def _log_telemetry(event: GraphTelemetryEvent) -> None:
    logger.debug(
        "Graph request",
        method=event.method,
        url=event.url,
        status_code=event.status_code,
        duration_ms=round(event.duration_ms, 2),
        category=event.category.value if event.category else None,
    )


class GraphClientFactory:
    """Send authenticated Microsoft Graph requests, one at a time.

    The ``httpx.AsyncClient`` is created on first use and kept until
    :meth:`close`. Any response with a status of 400 or above raises a
    :class:`GraphAPIError` carrying an ``az rest`` command that replays the
    call. Nothing is retried.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        config: GraphClientConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token_provider = token_provider
        self._config = config
        self._transport = transport
        self._on_telemetry = config.telemetry_callback or _log_telemetry
        self._http_client: httpx.AsyncClient | None = None

    def build_url(self, path: str, api_version: str | None = None) -> str:
        """Absolute URL for ``path``; absolute inputs such as nextLinks pass through."""

        if path.startswith(("https://", "http://")):
            return path
        version = (api_version or self._config.api_version).strip("/")
        return f"{GRAPH_ROOT}/{version}/{path.strip().lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
        headers: dict[str, str] | None = None,
        api_version: str | None = None,
    ) -> httpx.Response:
        url = self.build_url(path, api_version)
        started = time.perf_counter()
        try:
            response = await self._client().request(
                method, url, params=params, json=json_body, headers=headers
            )
        except httpx.RequestError as exc:
            reason = (
                "timed out"
                if isinstance(exc, httpx.TimeoutException)
                else f"failed: {exc}"
            )
            error = GraphAPIError(
                message=f"Request to Microsoft Graph {reason}",
                category=GraphErrorCategory.NETWORK,
            )
            self._emit(method, url, started, None, error.category)
            self._attach_request(error, method, url, params, json_body)
            raise error from exc

        if response.status_code >= 400:
            error = error_from_response(response)
            self._emit(method, url, started, response.status_code, error.category)
            self._attach_request(error, method, url, params, json_body)
            raise error

        self._emit(method, url, started, response.status_code, None)
        return response

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
        headers: dict[str, str] | None = None,
        api_version: str | None = None,
    ) -> dict[str, Any]:
        response = await self.request(
            method,
            path,
            params=params,
            json_body=json_body,
            headers=headers,
            api_version=api_version,
        )
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    async def execute(self, request: GraphRequest) -> dict[str, Any]:
        """Send a prepared :class:`GraphRequest` and return its JSON body."""

        return await self.request_json(
            request.method,
            request.url,
            params=request.params,
            json_body=request.body,
            headers=request.headers,
            api_version=request.api_version,
        )

    async def iter_collection(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        api_version: str | None = None,
    ) -> AsyncGenerator[dict[str, Any], None]:
        """Yield every item of a collection, following ``@odata.nextLink``.

        ``params`` go out on the first page only, exactly as given; later pages
        use the nextLink verbatim since it already carries the query string.
        """

        url: str | None = self.build_url(path, api_version)
        query = params
        while url:
            page = await self.request_json(method, url, params=query, headers=headers)
            items = page.get("value")
            if not isinstance(items, list):
                yield page
                return
            for item in items:
                yield item if isinstance(item, dict) else {"value": item}
            url = page.get("@odata.nextLink")
            query = None

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:

            def bearer_auth(request: httpx.Request) -> httpx.Request:
                token = self._token_provider(self._config.scopes)
                request.headers["Authorization"] = f"Bearer {token.token}"
                return request

            self._http_client = httpx.AsyncClient(
                headers={"User-Agent": self._config.user_agent},
                auth=bearer_auth,
                transport=self._transport,
                timeout=httpx.Timeout(self._config.timeout, connect=10.0),
            )
        return self._http_client

    def _attach_request(
        self,
        error: GraphAPIError,
        method: str,
        url: str,
        params: dict[str, Any] | None,
        json_body: Any | None,
    ) -> None:
        if params:
            url = f"{url}{'&' if '?' in url else '?'}{httpx.QueryParams(params)}"
        error.request_method = method.upper()
        error.request_url = url
        error.cli_example = az_rest_command(error.request_method, url, json_body)

    def _emit(
        self,
        method: str,
        url: str,
        started: float,
        status_code: int | None,
        category: GraphErrorCategory | None,
    ) -> None:
        event = GraphTelemetryEvent(
            method=method.upper(),
            url=url,
            status_code=status_code,
            duration_ms=(time.perf_counter() - started) * 1000,
            category=category,
        )
        try:
            self._on_telemetry(event)
        except Exception:  # pragma: no cover - telemetry must not fail a request
            logger.warning("Telemetry callback raised an exception", exc_info=True)


def az_rest_command(method: str, url: str, json_body: Any | None = None) -> str:
    """Shell command replaying a Graph call with the Azure CLI's own sign-in."""

    tokens = ["az", "rest", "--method", method, "--url", url]
    if json_body is not None:
        body = json.dumps(json_body, ensure_ascii=True, separators=(",", ":"), default=str)
        if len(body) > _CLI_BODY_LIMIT:
            body = body[: _CLI_BODY_LIMIT - 3] + "..."
        tokens.extend(["--body", body])
    return shlex.join(tokens)


__all__ = [
    "GRAPH_ROOT",
    "GraphClientConfig",
    "GraphClientFactory",
    "GraphTelemetryEvent",
    "TokenProvider",
    "az_rest_command",
]
