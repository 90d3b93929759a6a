"""Blocking HTTPS transport shared by the exchange adapters."""

import types
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final, Self

import httpx
from loguru import logger

from coinrest.errors import ConnectionFailed

# --- Constants ---
CONNECT_TIMEOUT_S: Final[float] = 5.0
READ_TIMEOUT_S: Final[float] = 15.0
DEFAULT_TIMEOUT: Final[httpx.Timeout] = httpx.Timeout(
    READ_TIMEOUT_S, connect=CONNECT_TIMEOUT_S
)
# Maximum number of CA levels above the peer certificate, OpenSSL style.
MAX_CHAIN_DEPTH: Final[int] = 5


@dataclass(frozen=True)
class RawResponse:
    """Status and undecoded body of an HTTP exchange."""

    status: int
    body: str
    url: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class HttpTransport:
    """Blocking HTTPS transport with fixed timeouts and no retries.

    Wraps a single `httpx.Client`. Peer certificates are always verified and
    redirects are never followed, so a signed request is only ever sent to
    the URL it was signed for. Any network failure surfaces as
    `ConnectionFailed`; deciding whether to retry is up to the caller.

    The certificate chain depth is read from the finished connection, so it
    is checked after the request has been sent; an over-long chain fails the
    call but cannot stop the request from going out. The check needs
    ``ssl.SSLObject.get_verified_chain()`` (Python 3.13+) and is skipped,
    with one DEBUG line per transport, on older interpreters.
    """

    def __init__(
        self,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
        max_chain_depth: int = MAX_CHAIN_DEPTH,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initializes the transport.

        Args:
            timeout: Connect/read timeouts applied to every request.
            max_chain_depth: Deepest certificate chain accepted from a peer.
            transport: Optional httpx transport, e.g. `httpx.MockTransport`
                in tests.
        """
        self.max_chain_depth = max_chain_depth
        self._chain_check_skip_logged = False
        self._client = httpx.Client(
            timeout=timeout,
            verify=True,
            follow_redirects=False,
            transport=transport,
        )

    def request(
        self,
        method: str,
        url: str,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        content: bytes | None = None,
    ) -> RawResponse:
        """Performs one HTTP request.

        Raises:
            ConnectionFailed: On timeout, transport error or an over-long
                certificate chain.
        """
        try:
            response = self._client.request(
                method, url, params=params, headers=headers, content=content
            )
        except httpx.TimeoutException as e:
            err_msg = f"Timed out: {method} {url}"
            raise ConnectionFailed(err_msg) from e
        except httpx.TransportError as e:
            err_msg = f"Transport error on {method} {url}: {type(e).__name__}"
            raise ConnectionFailed(err_msg) from e

        self._check_chain_depth(response)
        logger.trace(f"{method} {url} -> {response.status_code}")
        return RawResponse(
            status=response.status_code, body=response.text, url=str(response.url)
        )

    def _check_chain_depth(self, response: httpx.Response) -> None:
        stream = response.extensions.get("network_stream")
        if stream is None:
            return
        ssl_object = stream.get_extra_info("ssl_object")
        if ssl_object is None:
            return
        # get_verified_chain() exists from Python 3.13 on.
        if not hasattr(ssl_object, "get_verified_chain"):
            if not self._chain_check_skip_logged:
                logger.debug("Certificate chain depth not checked on this Python version.")
                self._chain_check_skip_logged = True
            return
        chain = ssl_object.get_verified_chain()
        # Level 0 is the peer, the trust anchor may sit at max_chain_depth + 1.
        if len(chain) > self.max_chain_depth + 2:
            err_msg = (
                f"Certificate chain of {len(chain)} exceeds depth "
                f"{self.max_chain_depth} for {response.url.host}"
            )
            raise ConnectionFailed(err_msg)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        self.close()
