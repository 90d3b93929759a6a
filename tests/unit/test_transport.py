import httpx
import pytest
from loguru import logger

from coinrest.errors import ConnectionFailed
from coinrest.transport import DEFAULT_TIMEOUT, HttpTransport, RawResponse


def mock_transport(handler) -> HttpTransport:
    return HttpTransport(transport=httpx.MockTransport(handler))


def test_request_returns_status_and_body() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text='{"ok": true}')

    with mock_transport(handler) as transport:
        raw = transport.request(
            "POST",
            "https://example.com/api",
            headers={"X-Test": "1"},
            content=b"a=1",
        )

    assert raw == RawResponse(status=200, body='{"ok": true}', url="https://example.com/api")
    assert raw.ok
    assert seen[0].headers["X-Test"] == "1"
    assert seen[0].content == b"a=1"


def test_params_are_encoded() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=str(request.url))

    raw = mock_transport(handler).request("GET", "https://example.com/t", params={"pair": "x_y"})
    assert raw.body == "https://example.com/t?pair=x_y"


def test_redirects_are_not_followed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"Location": "https://elsewhere.example/"})

    raw = mock_transport(handler).request("GET", "https://example.com/")
    assert raw.status == 302
    assert not raw.ok


@pytest.mark.parametrize(
    "error",
    [httpx.ConnectTimeout, httpx.ReadTimeout, httpx.ConnectError, httpx.RemoteProtocolError],
)
def test_network_errors_become_connection_failed(error) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise error("boom", request=request)

    with pytest.raises(ConnectionFailed) as exc_info:
        mock_transport(handler).request("GET", "https://example.com/")
    assert isinstance(exc_info.value.__cause__, error)


def test_default_timeouts() -> None:
    assert DEFAULT_TIMEOUT.connect == 5.0
    assert DEFAULT_TIMEOUT.read == 15.0


# --- certificate chain depth ---


class FakeSSLObject:
    def __init__(self, chain_length: int) -> None:
        self.chain = [object()] * chain_length

    def get_verified_chain(self) -> list[object]:
        return self.chain


class LegacySSLObject:
    """An SSL object from an interpreter without get_verified_chain()."""


class FakeNetworkStream:
    def __init__(self, ssl_object: object) -> None:
        self.ssl_object = ssl_object

    def get_extra_info(self, info: str) -> object:
        return self.ssl_object if info == "ssl_object" else None


def chain_transport(ssl_object: object, max_chain_depth: int) -> HttpTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, text="{}", extensions={"network_stream": FakeNetworkStream(ssl_object)}
        )

    return HttpTransport(
        max_chain_depth=max_chain_depth, transport=httpx.MockTransport(handler)
    )


def test_chain_within_depth_is_accepted() -> None:
    # Peer, two intermediates and the root.
    transport = chain_transport(FakeSSLObject(2 + 2), max_chain_depth=2)
    assert transport.request("GET", "https://example.com/").ok


def test_chain_beyond_depth_is_rejected() -> None:
    transport = chain_transport(FakeSSLObject(2 + 3), max_chain_depth=2)
    with pytest.raises(ConnectionFailed, match="exceeds depth 2 for example.com"):
        transport.request("GET", "https://example.com/")


def test_chain_check_skipped_without_verified_chain_api() -> None:
    messages: list[str] = []
    sink_id = logger.add(messages.append, level="DEBUG", format="{message}")
    try:
        transport = chain_transport(LegacySSLObject(), max_chain_depth=0)
        assert transport.request("GET", "https://example.com/").ok
        assert transport.request("GET", "https://example.com/").ok
    finally:
        logger.remove(sink_id)

    skipped = [m for m in messages if "chain depth not checked" in m]
    assert len(skipped) == 1
