from dataclasses import dataclass

import pytest

from fregate.errors import SendRequestError, UriBuilderError
from fregate.messages import Headers, Request, Response
from fregate.proxy import ProxyLayer, ProxyService


class FakeClient:
    def __init__(self, response=None, error=None):
        self.response = response if response is not None else Response(status=201, body=b"proxied")
        self.error = error
        self.seen = []

    async def __call__(self, request):
        self.seen.append(request.uri)
        if self.error is not None:
            raise self.error
        return self.response


async def inner_handler(request):
    return Response(status=200, body=b"inner")


def make_layer(client, should, events, extension_type=None, destination="http://example.com:8080"):
    def on_error(err, ext):
        events.append(("error", err, ext))
        return Response(status=502, body=str(err).encode())

    def on_request(req, ext):
        events.append(("request", req.uri, ext))

    def on_response(resp, ext):
        resp.headers.add("x-proxied", "yes")
        events.append(("response", resp.status, ext))

    async def should_proxy(req, ext):
        return should

    return ProxyLayer(
        client,
        destination,
        on_error,
        on_request,
        on_response,
        should_proxy,
        extension_type=extension_type,
    )


def test_destination_without_scheme_is_rejected():
    with pytest.raises(ValueError, match="no scheme"):
        make_layer(FakeClient(), True, [], destination="/only/path")


def test_destination_without_authority_is_rejected():
    with pytest.raises(ValueError, match="no authority"):
        make_layer(FakeClient(), True, [], destination="http://")


def test_layer_keeps_destination():
    layer = make_layer(FakeClient(), True, [])
    assert layer.destination == "http://example.com:8080"


@pytest.mark.asyncio
async def test_not_proxied_goes_to_inner():
    client = FakeClient()
    events = []
    service = make_layer(client, False, events).layer(inner_handler)
    response = await service(Request(uri="/hello"))
    assert response.body == b"inner"
    assert client.seen == []
    assert events == []


@pytest.mark.asyncio
async def test_proxied_request_rewrites_uri():
    client = FakeClient()
    events = []
    service = make_layer(client, True, events).layer(inner_handler)
    response = await service(Request(uri="/path?q=1"))
    assert client.seen == ["http://example.com:8080/path?q=1"]
    assert response.body == b"proxied"
    assert response.headers.get("x-proxied") == "yes"
    assert events[0] == ("request", "http://example.com:8080/path?q=1", None)
    assert events[1] == ("response", 201, None)


@pytest.mark.asyncio
async def test_absolute_request_uri_keeps_only_path_and_query():
    client = FakeClient()
    service = make_layer(client, True, []).layer(inner_handler)
    await service(Request(uri="http://other.example.com/a/b?x=y"))
    assert client.seen == ["http://example.com:8080/a/b?x=y"]


@pytest.mark.asyncio
async def test_client_error_goes_to_error_callback():
    failure = ConnectionError("refused")
    client = FakeClient(error=failure)
    events = []
    service = make_layer(client, True, events).layer(inner_handler)
    response = await service(Request(uri="/x"))
    assert response.status == 502
    kind, err, _ = events[-1]
    assert kind == "error"
    assert isinstance(err, SendRequestError)
    assert err.source is failure
    assert response.body == str(err).encode()


@pytest.mark.asyncio
async def test_bad_path_gives_uri_builder_error():
    client = FakeClient()
    events = []
    service = make_layer(client, True, events).layer(inner_handler)
    response = await service(Request(uri="/bad path"))
    assert response.status == 502
    assert isinstance(events[0][1], UriBuilderError)
    assert client.seen == []


@dataclass
class Tenant:
    name: str = "none"


@pytest.mark.asyncio
async def test_extension_taken_from_request():
    events = []
    service = make_layer(FakeClient(), True, events, extension_type=Tenant).layer(inner_handler)
    stored = Tenant("acme")
    await service(Request(uri="/", extensions={Tenant: stored}))
    ext = events[0][2]
    assert ext == Tenant("acme")
    assert ext is not stored


@pytest.mark.asyncio
async def test_extension_defaults_when_missing():
    events = []
    service = make_layer(FakeClient(), True, events, extension_type=Tenant).layer(inner_handler)
    await service(Request(uri="/"))
    assert events[0][2] == Tenant()


@pytest.mark.asyncio
async def test_should_proxy_sees_request_and_sync_callbacks_work():
    client = FakeClient()
    seen = []

    def should_proxy(req, ext):
        seen.append(req.uri)
        return req.uri.startswith("/api")

    layer = ProxyLayer(
        client,
        "https://example.com",
        lambda err, ext: Response(status=500),
        lambda req, ext: None,
        lambda resp, ext: None,
        should_proxy,
    )
    service = layer.layer(lambda req: Response(status=404, headers=Headers(), body=b"local"))
    local = await service(Request(uri="/static"))
    remote = await service(Request(uri="/api/items"))
    assert local.body == b"local"
    assert remote.body == b"proxied"
    assert seen == ["/static", "/api/items"]
    assert client.seen == ["https://example.com/api/items"]


def test_layer_builds_independent_services():
    layer = make_layer(FakeClient(), True, [])
    first = layer.layer(inner_handler)
    second = layer.layer("other")
    assert isinstance(first, ProxyService)
    assert first.inner is inner_handler
    assert second.inner == "other"