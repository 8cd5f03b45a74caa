from fregate.messages import Headers
from fregate.propagation import (
    Span,
    SpanContext,
    current_span,
    extract_context,
    inject_from_current_span,
    inject_from_span,
)


def test_round_trip_through_headers():
    span = Span("work")
    headers = Headers()
    inject_from_span(headers, span)
    assert extract_context(headers) == span.context


def test_round_trip_through_dict():
    span = Span("work")
    metadata = {}
    inject_from_span(metadata, span)
    assert extract_context(metadata) == span.context


def test_no_current_span_injects_nothing():
    headers = Headers()
    inject_from_current_span(headers)
    assert len(headers) == 0


def test_current_span_inside_block():
    span = Span("outer")
    headers = Headers()
    with span.entered():
        assert current_span() is span
        inject_from_current_span(headers)
    assert extract_context(headers) == span.context
    assert current_span() is not span


def test_set_parent_adopts_trace_id():
    parent = SpanContext.new_root()
    span = Span("child")
    span.set_parent(parent)
    assert span.context.trace_id == parent.trace_id
    assert span.context.span_id != parent.span_id
    assert span.parent == parent


def test_malformed_header_ignored():
    assert extract_context(Headers([("traceparent", "garbage")])) is None
    assert extract_context(Headers()) is None


def test_record_sets_field():
    span = Span("s")
    span.record("service", "svc")
    assert span.fields["service"] == "svc"