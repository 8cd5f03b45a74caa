"""Logging and span recording for incoming HTTP and gRPC requests."""

from __future__ import annotations

import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, Union
from urllib.parse import urlsplit

from fregate.grpc_codes import GrpcCode
from fregate.messages import Headers, Request, Response
from fregate.propagation import Span, current_span, extract_context

__all__ = [
    "REMOTE_ADDR",
    "is_grpc",
    "extract_grpc_status_code",
    "extract_remote_address",
    "make_http_span",
    "make_grpc_span",
    "trace_http_request",
    "trace_grpc_request",
    "trace_request",
]

REMOTE_ADDR = "remote_addr"
_HEADER_GRPC_STATUS = "grpc-status"
_PROTOCOL_GRPC = "grpc"
_PROTOCOL_HTTP = "http"

_log = logging.getLogger("fregate.request")

NextHandler = Callable[[Request], Union[Awaitable[Response], Response]]


def is_grpc(headers: Headers) -> bool:
    """True when the content type starts with ``application/grpc``."""
    content_type = headers.get("content-type")
    return content_type is not None and content_type.startswith("application/grpc")


def extract_grpc_status_code(headers: Headers) -> GrpcCode | None:
    """Parse the ``grpc-status`` header; ``None`` if absent or not an integer."""
    raw = headers.get(_HEADER_GRPC_STATUS)
    if raw is None:
        return None
    try:
        return GrpcCode(int(raw.strip()))
    except ValueError:
        return None


def extract_remote_address(request: Request) -> tuple[str, int] | None:
    """Return the ``(ip, port)`` stored under ``REMOTE_ADDR`` in the request extensions."""
    return request.extensions.get(REMOTE_ADDR)


def make_http_span() -> Span:
    """Create an HTTP request span with its fields declared but empty."""
    return Span(
        "http-request",
        fields={
            "service": None,
            "component": None,
            "http.method": None,
            "http.status_code": None,
            "net.peer.ip": None,
            "net.peer.port": None,
            "trace.level": "INFO",
        },
    )


def make_grpc_span() -> Span:
    """Create a gRPC request span with its fields declared but empty."""
    return Span(
        "grpc-request",
        fields={
            "service": None,
            "component": None,
            "rpc.system": "grpc",
            "rpc.method": None,
            "rpc.grpc.stream.id": None,
            "rpc.grpc.status_code": None,
            "net.peer.ip": None,
            "net.peer.port": None,
            "trace.level": "INFO",
        },
    )


async def _run(next_handler: NextHandler, request: Request) -> Response:
    result: Any = next_handler(request)
    if inspect.isawaitable(result):
        result = await result
    return result


def _record_peer(span: Span, request: Request) -> None:
    address = extract_remote_address(request)
    if address is not None:
        span.record("net.peer.ip", str(address[0]))
        span.record("net.peer.port", address[1])


def _path_and_query(uri: str) -> str:
    parts = urlsplit(uri)
    path = parts.path or "/"
    return f"{path}?{parts.query}" if parts.query else path


async def trace_http_request(
    request: Request, next_handler: NextHandler, service_name: str, component_name: str
) -> Response:
    """Record the request on the current span, log it, run ``next_handler`` and log the response."""
    span = current_span()
    method = request.method
    span.record("service", service_name)
    span.record("component", component_name)
    span.record("http.method", method)
    _record_peer(span, request)

    url = _path_and_query(request.uri)
    _log.info(">>> [Request] [%s] [%s]", method, url, extra={"method": method, "url": url})

    started = time.monotonic()
    response = await _run(next_handler, request)
    duration = int((time.monotonic() - started) * 1000)

    status = str(response.status)
    span.record("http.status_code", status)
    _log.info(
        "[Response] <<< [%s] [%s] [%s] [%s] in [%sms]",
        method, url, _PROTOCOL_HTTP, status, duration,
        extra={"method": method, "url": url, "duration": duration, "statusCode": status},
    )
    return response


async def trace_grpc_request(
    request: Request, next_handler: NextHandler, service_name: str, component_name: str
) -> Response:
    """Record a gRPC call on the current span, log it, run ``next_handler`` and log the status."""
    span = current_span()
    method = request.method
    grpc_method = urlsplit(request.uri).path or "/"
    _log.info(">>> [Request] [%s] [%s]", method, grpc_method, extra={"url": grpc_method})

    span.record("service", service_name)
    span.record("component", component_name)
    span.record("rpc.method", grpc_method)
    _record_peer(span, request)

    started = time.monotonic()
    response = await _run(next_handler, request)
    duration = int((time.monotonic() - started) * 1000)

    code = extract_grpc_status_code(response.headers)
    status = int(code if code is not None else GrpcCode.UNKNOWN)
    span.record("rpc.grpc.status_code", status)
    _log.info(
        "[Response] <<< [%s] [%s] [%s] [%s] in [%sms]",
        method, grpc_method, _PROTOCOL_GRPC, status, duration,
        extra={"url": grpc_method, "duration": duration, "statusCode": status},
    )
    return response


async def trace_request(
    request: Request, next_handler: NextHandler, service_name: str, component_name: str
) -> Response:
    """Trace ``request`` as gRPC or HTTP inside a new span parented on incoming context."""
    grpc = is_grpc(request.headers)
    span = make_grpc_span() if grpc else make_http_span()
    span.set_parent(extract_context(request.headers))
    tracer = trace_grpc_request if grpc else trace_http_request
    with span.entered():
        return await tracer(request, next_handler, service_name, component_name)