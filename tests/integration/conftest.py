import json
from collections import defaultdict
from typing import Any

import httpx
import pytest

from coinrest.adapters import ADAPTERS
from coinrest.adapters.base import MarketAdapter
from coinrest.models import Credentials
from coinrest.transport import HttpTransport

FROZEN_TIME = 1_700_000_000.0
API_KEY = "test-key-7f3a"
API_SECRET = "test-secret-9c1e"


class FakeExchange:
    """Routes requests to canned responses and records everything it receives.

    Routes are keyed by method and URL without query string. Each route holds
    a list of responses served in order; the last one repeats.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[httpx.Response]] = defaultdict(list)
        self.requests: list[httpx.Request] = []

    def add(self, method: str, url: str, body: Any, status: int = 200) -> None:
        text = body if isinstance(body, str) else json.dumps(body)
        self.routes[(method, url)].append(httpx.Response(status, text=text))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        queue = self.routes.get((request.method, url))
        if not queue:
            return httpx.Response(404, text="")
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def form(self, index: int) -> str:
        return self.requests[index].content.decode("utf-8")


@pytest.fixture
def exchange() -> FakeExchange:
    return FakeExchange()


@pytest.fixture
def transport(exchange: FakeExchange) -> HttpTransport:
    return HttpTransport(transport=httpx.MockTransport(exchange.handler))


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(api_key=API_KEY, api_secret=API_SECRET)


@pytest.fixture
def make_adapter(transport: HttpTransport, credentials: Credentials):
    """Builds an adapter on the fake exchange with a frozen clock."""

    def _make(name: str, with_credentials: bool = True) -> MarketAdapter:
        return ADAPTERS[name](
            credentials=credentials if with_credentials else Credentials(),
            transport=transport,
            clock=lambda: FROZEN_TIME,
        )

    return _make
