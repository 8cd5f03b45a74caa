import pytest

from fregate.messages import Headers, Request, Response, yaml


def test_yaml_response():
    content = "openapi: 3.0.0\n"
    response = yaml(content)
    assert response.status == 200
    assert response.headers.get("Content-Type") == "application/yaml"
    assert response.headers.get("cache-control") == "24 hours"
    assert response.body == content.encode()


def test_headers_case_insensitive_lookup():
    headers = Headers([("X-Trace", "abc")])
    assert headers.get("x-trace") == "abc"
    assert headers["X-TRACE"] == "abc"
    assert "x-Trace" in headers


def test_headers_missing_name():
    headers = Headers()
    assert headers.get("absent") is None
    assert headers.get("absent", "fallback") == "fallback"
    with pytest.raises(KeyError):
        headers["absent"]


def test_headers_keep_multiple_values_in_order():
    headers = Headers()
    headers.add("Accept", "a")
    headers.add("accept", "b")
    assert headers.get("accept") == "a"
    assert headers.get_all("ACCEPT") == ["a", "b"]
    assert len(headers) == 2


def test_headers_set_replaces_all_values():
    headers = Headers([("accept", "a"), ("accept", "b"), ("host", "h")])
    headers.set("Accept", "c")
    assert headers.get_all("accept") == ["c"]
    assert headers.items() == [("host", "h"), ("accept", "c")]


def test_headers_from_mapping_and_equality():
    assert Headers({"A": "1", "b": "2"}) == Headers([("a", "1"), ("B", "2")])
    assert list(Headers({"A": "1"})) == ["a"]


def test_request_and_response_defaults_are_independent():
    first, second = Request(), Request()
    first.headers.add("x", "1")
    first.extensions["k"] = "v"
    assert len(second.headers) == 0
    assert second.extensions == {}
    assert Response().headers.items() == []