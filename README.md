# fregate

Small, dependency-free building blocks for HTTP and gRPC services:

- **Header filtering** (`fregate.headers_filter`) – include, exclude or mask
  request headers before they reach your logs.
- **JSON log formatting** (`fregate.event_formatter`) – a `logging.Formatter`
  that writes one JSON object per line.
- **Structured log fields** (`fregate.tracing_fields`) – a `TracingFields`
  bag whose pairs are flattened into a log line.
- **Logging set-up** (`fregate.log_setup`) – JSON logging to standard output
  through a background writer, with a level that can be changed at run time.
- **Request tracing** (`fregate.request_tracing`) – log every HTTP or gRPC
  request on the way in and out and fill in its span.
- **Trace context propagation** (`fregate.propagation`) – W3C `traceparent`
  injection into outgoing headers and extraction from incoming ones.
- **Proxying** (`fregate.proxy`) – a middleware that decides per request
  whether to forward it to another destination or hand it to the next handler.
- **Metrics** (`fregate.metrics`) – a process-wide recorder that renders
  counters and gauges in the Prometheus text format.
- **Sugar** – gRPC status code names and numbers (`fregate.grpc_codes`), a
  seeded hash helper (`fregate.hash_builder`), UTF-8 aware truncation
  (`fregate.text`) and a ready-made YAML response (`fregate.messages`).

## Installation

```
pip install fregate
```

Python 3.10 or later is required. The package has no runtime dependencies.

## Messages

`fregate.messages` provides the small HTTP types the other modules work on:

- `Headers` – an ordered, case-insensitive multi-map; names are stored
  lower-cased. It has `add`, `set`, `remove`, `get`, `get_all` and `items`.
- `Request` – a dataclass with `method`, `uri`, `headers`, `body` and
  `extensions` (a free-form dictionary).
- `Response` – a dataclass with `status`, `headers` and `body`.
- `yaml(content)` – a `200` response whose body is `content` encoded as
  UTF-8, with `content-type: application/yaml` and `cache-control: 24 hours`.

## Filtering headers

A `HeadersFilter` holds three `Filter`s: which headers to include, which to
exclude and which to sanitize. Each is either every header (written `*`) or a
comma separated list of names, compared case-insensitively. A sanitized header
keeps its name but its value becomes `*****` (`SANITIZED_VALUE`).

```python
from fregate.headers_filter import HeadersFilter, get_filtered
from fregate.messages import Headers

headers = Headers()
headers.add("Authorization", "Bearer token")
headers.add("Password", "password")
headers.add("X-Request-Id", "abc")

headers_filter = HeadersFilter.from_config(
    {"include": "*", "exclude": "password", "sanitize": "authorization"}
)
filtered = get_filtered(headers, headers_filter)

filtered.get("authorization")  # "*****"
filtered.get("password")       # None, excluded
filtered.get("x-request-id")   # "abc"
```

Keys missing from the configuration, or not holding a string, give an empty
list of names — so a configuration without `include` includes nothing.

`HeadersFilter.from_env(prefix)` reads `<PREFIX>_HEADERS_INCLUDE`,
`<PREFIX>_HEADERS_EXCLUDE` and `<PREFIX>_HEADERS_SANITIZE`; when the include
variable is unset every header is included.

A filter can be installed process-wide once with `set_headers_filter()` and
read back with `get_headers_filter()`. `get_filtered(headers)` without a
filter uses the installed one; with none installed it returns the very same
`Headers` object unchanged.

`pointer_and_deserialize(value, pointer, kind)` is the JSON-pointer lookup
used for reading the configuration: it raises `KeyError` when nothing is found
and `TypeError` when the value is not of `kind`.

## JSON log lines

`EventFormatter` is a `logging.Formatter`. Each line holds, in order: `time`
(nanoseconds), `timestamp` (UTC, millisecond precision), `LogLevel`, `target`
(the logger name), `traceId` and `spanId` when the record carries `trace_id`,
the fields added to every event, `msg`, and then the record's `extra` fields
sorted by name.

```python
import logging
from fregate.event_formatter import EventFormatter

formatter = EventFormatter(msg_len=256)
formatter.add_field_to_events("region", "eu-west")

handler = logging.StreamHandler()
handler.setFormatter(formatter)
logging.getLogger("app").addHandler(handler)
```

`add_field_to_events` raises `fregate.errors.FregateError` for the reserved
keys (`version`, `service`, `component`, `target`, `msg`, `message`,
`LogLevel`, `time`, `timestamp`, `traceId`, `spanId`) and for values that
cannot be written as JSON. `version`, `service` and `component` can be set
through the formatter's keyword arguments instead.

With `msg_len` set, a longer message is cut to that many UTF-8 bytes and ends
with ` ...`; the cut never splits a character. The same helpers are available
as `fregate.text.limit_str` and `fregate.text.floor_char_boundary`.

## Structured fields

```python
import logging
from fregate.tracing_fields import TracingFields

fields = TracingFields()
fields.insert_str("user", "alice")
fields.insert_as_string("address", "127.0.0.1:8080")
fields.remove_by_key("user")

other = TracingFields()
other.insert("attempt", 3)
fields.merge(other)

logging.getLogger("app").info("connected", extra={"marker": fields})
```

When a `TracingFields` object is passed as an `extra` value, `EventFormatter`
writes each of its pairs as a top-level field rather than under `marker`.
`as_value()` returns the pairs as a plain dictionary.

## Logging set-up

```python
from fregate.log_setup import get_log_layer_handle, init_tracing

guard = init_tracing("info", "info", "1.0.0", "shop", "checkout")
get_log_layer_handle().reload("debug")
...
guard.close()
```

`init_tracing` attaches an `EventFormatter` handler to the root logger that
writes to standard output from a background thread, installs the headers
filter if one is given, and routes uncaught exceptions to the
`fregate.panic` logger. It can be called once per process; a second call
raises `FregateError`. Levels are `trace`, `debug`, `info`, `warn`,
`error` and `off`; an unknown name means errors only. `log_layer(...)`
builds the same handler without installing it.

## Tracing requests

`trace_request(request, next_handler, service_name, component_name)` is a
coroutine. A `Content-Type` starting with `application/grpc` is traced with
`trace_grpc_request`, anything else with `trace_http_request`. A new span is
created, parented on the incoming `traceparent` header, and made current for
the call. The peer address is recorded when `request.extensions` holds an
`(ip, port)` pair under `REMOTE_ADDR`; the response line, logged to the
`fregate.request` logger, reports the status and the duration in
milliseconds. `next_handler` may be a plain function or a coroutine function.

The helpers are available on their own: `is_grpc`,
`extract_grpc_status_code`, `extract_remote_address`, `make_http_span` and
`make_grpc_span`.

To continue a trace in an outgoing call, inject the span context into its
headers (a `Headers` object or a plain dictionary):

```python
from fregate.propagation import Span, inject_from_current_span

with Span("outgoing").entered():
    outgoing_headers = {}
    inject_from_current_span(outgoing_headers)
```

Nothing is written when the current span has no valid context.
`extract_context(headers)` returns a `SpanContext` or `None`.

## Proxying

```python
from fregate.proxy import ProxyLayer

layer = ProxyLayer(
    client,                 # called with the rewritten request
    "http://backend:8080",
    on_proxy_error,         # (error, extension) -> Response
    on_proxy_request,       # (request, extension) -> None
    on_proxy_response,      # (response, extension) -> None
    should_proxy,           # (request, extension) -> bool
)
service = layer.layer(inner)
response = await service(request)
```

The destination must have a scheme and an authority, otherwise `ValueError`
is raised. A proxied request keeps its path and query and gets the
destination's scheme and host. Failures reach the error callback as a
`UriBuilderError` or a `SendRequestError`, both subclasses of
`fregate.errors.ProxyError`. With `extension_type=` set, callbacks receive a
copy of `request.extensions[extension_type]`, or a fresh instance when it is
absent; otherwise they receive `None`. `client`, `inner` and `should_proxy`
may be plain or asynchronous.

## Metrics

```python
from fregate.metrics import get_recorder, init_metrics, render_metrics

init_metrics()
recorder = get_recorder()
recorder.describe_counter("requests_total", "Requests served.")
recorder.increment_counter("requests_total", 1)
recorder.gauge("queue_depth", 4.0)

print(render_metrics(None))
```

`absolute_counter` sets a counter but never moves it backwards; negative
values raise `ValueError`. `render_metrics` runs its optional callback right
before rendering. `init_metrics` raises `FregateError` when called twice.

## Sugar

```python
from fregate.grpc_codes import GrpcCode, grpc_code_to_num, grpc_code_to_str
from fregate.hash_builder import HashBuilder
from fregate.messages import yaml

grpc_code_to_str(GrpcCode(5))  # "NotFound"
grpc_code_to_num(GrpcCode(5))  # "5"
GrpcCode(99)                   # GrpcCode.UNKNOWN

hasher = HashBuilder()
hasher.calculate_hash("key") == hasher.calculate_hash("key")  # True

response = yaml("openapi: 3.0.0\n")
```

Each `HashBuilder` picks its own random seed, so hashes are comparable only
within one builder.

## What this package does not do

- It is not a web server or framework: there is no application object, no
  routing, no health or metrics endpoints and no TLS. The middleware pieces
  work on the `Request` and `Response` types above and are wired into a
  server by you.
- It does not load configuration files or offer a single bootstrap call.
- It does not export traces: `init_tracing` accepts `trace_level` and
  `traces_endpoint` but sends spans nowhere. Spans live in process, and only
  their context travels in headers.
- It has no command-line program.

## Running the tests

```
pip install -e ".[test]"
pytest
```