"""Middleware that sends chosen requests on to another server."""

from __future__ import annotations

import copy
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Union
from urllib.parse import urlsplit

from fregate.errors import ProxyError, SendRequestError, UriBuilderError
from fregate.messages import Request, Response

__all__ = ["ProxyLayer", "ProxyService"]

_MaybeAwaitable = Union[Awaitable[Any], Any]
ShouldProxy = Callable[[Request, Any], _MaybeAwaitable]
OnProxyError = Callable[[ProxyError, Any], Response]
OnProxyRequest = Callable[[Request, Any], None]
OnProxyResponse = Callable[[Response, Any], None]
Handler = Callable[[Request], _MaybeAwaitable]


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _path_and_query(uri: str) -> str:
    parts = urlsplit(uri)
    path = parts.path or "/"
    return f"{path}?{parts.query}" if parts.query else path


def _check_path_and_query(path_and_query: str) -> None:
    for char in path_and_query:
        if char.isspace() or ord(char) < 0x20 or ord(char) == 0x7F:
            raise ValueError(f"invalid uri character: {char!r}")


@dataclass(frozen=True)
class _Shared:
    scheme: str
    authority: str
    should_proxy: ShouldProxy
    on_proxy_error: OnProxyError
    on_proxy_request: OnProxyRequest
    on_proxy_response: OnProxyResponse
    extension_type: type | None

    @property
    def destination(self) -> str:
        return f"{self.scheme}://{self.authority}"

    def extension_of(self, request: Request) -> Any:
        if self.extension_type is None:
            return None
        found = request.extensions.get(self.extension_type)
        if found is None:
            return self.extension_type()
        return copy.copy(found)

    def build_uri(self, request: Request) -> str:
        path_and_query = _path_and_query(request.uri)
        try:
            _check_path_and_query(path_and_query)
        except ValueError as err:
            raise UriBuilderError(err) from err
        return f"{self.scheme}://{self.authority}{path_and_query}"

    async def proxy(self, request: Request, client: Handler, extension: Any) -> Response:
        try:
            request.uri = self.build_uri(request)
        except UriBuilderError as err:
            return self.on_proxy_error(err, extension)

        self.on_proxy_request(request, extension)
        try:
            response = await _resolve(client(request))
        except Exception as err:  # any client failure goes to the error callback
            return self.on_proxy_error(SendRequestError(err), extension)

        self.on_proxy_response(response, extension)
        return response


class ProxyLayer:
    """Wraps handlers so that requests chosen by ``should_proxy`` go to ``destination``.

    Callbacks receive the request's extension: the value stored in
    ``request.extensions`` under ``extension_type`` (a copy), a fresh
    ``extension_type()`` when absent, or ``None`` when no type is given.
    Raises ``ValueError`` if ``destination`` has no scheme or authority.
    """

    def __init__(
        self,
        client: Handler,
        destination: str,
        on_proxy_error: OnProxyError,
        on_proxy_request: OnProxyRequest,
        on_proxy_response: OnProxyResponse,
        should_proxy: ShouldProxy,
        *,
        extension_type: type | None = None,
    ) -> None:
        parts = urlsplit(str(destination))
        if not parts.scheme or not parts.netloc:
            if "://" not in str(destination) or not parts.scheme:
                raise ValueError("destination Uri has no scheme!")
            raise ValueError("destination Uri has no authority!")
        self._client = client
        self._shared = _Shared(
            scheme=parts.scheme,
            authority=parts.netloc,
            should_proxy=should_proxy,
            on_proxy_error=on_proxy_error,
            on_proxy_request=on_proxy_request,
            on_proxy_response=on_proxy_response,
            extension_type=extension_type,
        )

    @property
    def destination(self) -> str:
        """Scheme and authority requests are sent to."""
        return self._shared.destination

    def layer(self, inner: Handler) -> ProxyService:
        """Return a service that proxies or hands requests to ``inner``."""
        return ProxyService(self._shared, self._client, inner)

    def __repr__(self) -> str:
        return f"ProxyLayer(destination={self.destination!r})"


class ProxyService:
    """Sends a request to the destination or to the inner handler."""

    def __init__(self, shared: _Shared, client: Handler, inner: Handler) -> None:
        self._shared = shared
        self._client = client
        self.inner = inner

    async def __call__(self, request: Request) -> Response:
        """Handle ``request``, proxying it when ``should_proxy`` says so."""
        extension = self._shared.extension_of(request)
        if await _resolve(self._shared.should_proxy(request, extension)):
            return await self._shared.proxy(request, self._client, extension)
        return await _resolve(self.inner(request))

    def __repr__(self) -> str:
        return f"ProxyService(destination={self._shared.destination!r}, inner={self.inner!r})"