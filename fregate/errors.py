"""Exceptions raised by the package."""

from __future__ import annotations

__all__ = ["FregateError", "ProxyError", "UriBuilderError", "SendRequestError"]


class FregateError(Exception):
    """Base class for all package errors."""


class ProxyError(FregateError):
    """An error met while proxying a request."""

    def __init__(self, source: object) -> None:
        super().__init__(source)
        self.source = source

    def __str__(self) -> str:
        return f"`{self.source}`"


class UriBuilderError(ProxyError):
    """The destination URI for a proxied request could not be built."""


class SendRequestError(ProxyError):
    """Sending the proxied request failed."""