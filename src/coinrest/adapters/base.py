"""The generic exchange adapter that every venue module specialises."""

import abc
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, ClassVar

from loguru import logger

from coinrest.descriptors import ExchangeDescriptor
from coinrest.errors import (
    AuthMissing,
    ExchangeClientError,
    ExchangeRejected,
    UnsupportedOperation,
    UnsupportedPair,
)
from coinrest.logging_config import register_secret
from coinrest.models import (
    Balance,
    CancelResult,
    Credentials,
    Depth,
    OpenOrder,
    OrderResult,
    Ticker,
)
from coinrest.nonce import NonceGenerator
from coinrest.normalizer import ResponseNormalizer
from coinrest.signing import SigningStrategy, signer_for
from coinrest.transport import HttpTransport, RawResponse
from coinrest.utils.decimals import format_decimal, to_decimal
from coinrest.utils.time import local_timestamp


@dataclass(frozen=True)
class Endpoint:
    """A request target: absolute URL, optional query/body fields, HTTP method."""

    url: str
    params: Mapping[str, Any] | None = None
    body: Mapping[str, Any] | None = None
    method: str = "GET"


def canonical_pair(pair: str) -> str:
    """Converts 'BTC/JPY', 'btc-jpy' or 'btc_jpy' to the canonical 'btc_jpy'."""
    return pair.strip().lower().replace("/", "_").replace("-", "_")


class MarketAdapter(abc.ABC):
    """An abstract base class for all exchange adapters.

    This class implements the uniform operation set (ticker, depth, balance,
    open orders, limit and market buy/sell, cancel, cancel-all) once,
    generically, on top of the subclass's `ExchangeDescriptor`. Subclasses
    only declare the descriptor and translate operations into endpoints.

    An operation the descriptor leaves unmapped raises
    `UnsupportedOperation`; a private operation without credentials raises
    `AuthMissing`. Both checks happen before any network traffic.
    """

    descriptor: ClassVar[ExchangeDescriptor]

    def __init__(
        self,
        credentials: Credentials | None = None,
        transport: HttpTransport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initializes the adapter.

        Args:
            credentials: API key and secret. Only checked when a private
                operation is invoked.
            transport: Shared HTTP transport; a private one is created if omitted.
            clock: Time source for nonces and local timestamps.
        """
        self._credentials = credentials or Credentials()
        self.transport = transport or HttpTransport()
        self._clock = clock
        self._nonce = NonceGenerator(scale=self.descriptor.nonce_scale, clock=clock)
        self._signer: SigningStrategy | None = (
            signer_for(self.descriptor.signing) if self.descriptor.signing else None
        )
        self.normalizer = ResponseNormalizer(self.descriptor)
        register_secret(self._credentials.api_key)
        register_secret(self._credentials.api_secret)

    @property
    def venue_name(self) -> str:
        """A unique, lowercase identifier for the exchange (e.g., 'zaif')."""
        return self.descriptor.name

    @property
    def pairs(self) -> list[str]:
        """Canonical names of the pairs this adapter trades."""
        return list(self.descriptor.pairs)

    def _normalize_symbol_to_venue(self, pair: str) -> str:
        """Looks up the exchange's code for a canonical pair."""
        canonical = canonical_pair(pair)
        try:
            return self.descriptor.pairs[canonical]
        except KeyError:
            err_msg = f"[{self.venue_name}] Unsupported pair: {pair}"
            raise UnsupportedPair(err_msg) from None

    # --- Public market data ---

    def ticker(self, pair: str) -> Ticker:
        """Returns the current ticker for ``pair``."""
        code = self._normalize_symbol_to_venue(pair)
        payload = self._public(self._ticker_endpoint(code))
        return self.normalizer.ticker(payload, code, self._now())

    def depth(self, pair: str) -> Depth:
        """Returns the order book for ``pair`` in exchange order."""
        code = self._normalize_symbol_to_venue(pair)
        payload = self._public(self._depth_endpoint(code))
        return self.normalizer.depth(payload, code, self._now())

    # --- Private account data ---

    def balance(self) -> Balance:
        """Returns total and available holdings per currency."""
        self._require_capability(self.descriptor.balance, "balance")
        self._require_credentials()
        return self.normalizer.balance(self._private(self._balance_endpoint()))

    def open_orders(self, pair: str | None = None) -> list[OpenOrder]:
        """Returns outstanding orders, optionally restricted to ``pair``."""
        self._require_capability(self.descriptor.open_orders, "open_orders")
        self._require_credentials()
        code = self._normalize_symbol_to_venue(pair) if pair is not None else None
        return self.normalizer.open_orders(self._private(self._open_orders_endpoint(code)))

    # --- Trading ---

    def buy(self, pair: str, rate: Decimal | int | str, amount: Decimal | int | str) -> OrderResult:
        """Places a limit buy order."""
        return self._place_order(pair, "buy", rate, amount)

    def sell(self, pair: str, rate: Decimal | int | str, amount: Decimal | int | str) -> OrderResult:
        """Places a limit sell order."""
        return self._place_order(pair, "sell", rate, amount)

    def market_buy(self, pair: str, amount: Decimal | int | str) -> OrderResult:
        """Places a market buy order.

        ``amount`` is whatever the exchange spends on a market buy; Coincheck
        takes it in the quote currency (JPY).
        """
        return self._place_market_order(pair, "buy", amount)

    def market_sell(self, pair: str, amount: Decimal | int | str) -> OrderResult:
        """Places a market sell order for ``amount`` of the base currency."""
        return self._place_market_order(pair, "sell", amount)

    def cancel(self, order_id: str, pair: str | None = None) -> CancelResult:
        """Cancels one order. A rejection is reported in the result, not raised."""
        spec = self._require_capability(self.descriptor.cancel, "cancel")
        self._require_credentials()
        code = self._normalize_symbol_to_venue(pair) if pair is not None else None
        if spec.requires_pair and code is None:
            err_msg = f"[{self.venue_name}] Cancelling requires the order's pair."
            raise UnsupportedPair(err_msg)
        raw = self._send_private(self._cancel_endpoint(str(order_id), code))
        return self.normalizer.cancel(self.normalizer.decode(raw), raw.status, str(order_id))

    def cancel_all(self, pair: str | None = None) -> list[CancelResult]:
        """Cancels every open order, one request per order.

        This is not atomic. Every order is attempted even when an earlier
        cancel fails, and the outcome of each is reported individually.
        """
        self._require_capability(self.descriptor.cancel, "cancel_all")
        results = []
        for order in self.open_orders(pair):
            try:
                results.append(self.cancel(order.id, order.pair or pair))
            except ExchangeClientError as e:
                logger.warning(f"[{self.venue_name}] Cancel of order {order.id} failed: {e}")
                results.append(CancelResult(order_id=order.id, success=False, error=str(e)))
        cancelled = sum(1 for r in results if r.success)
        logger.info(f"[{self.venue_name}] Cancelled {cancelled} of {len(results)} open orders.")
        return results

    def _place_order(
        self,
        pair: str,
        side: str,
        rate: Decimal | int | str,
        amount: Decimal | int | str,
    ) -> OrderResult:
        self._require_capability(self.descriptor.order, side)
        self._require_credentials()
        code = self._normalize_symbol_to_venue(pair)
        rate_text, amount_text = format_decimal(rate), format_decimal(amount)
        endpoint = self._order_endpoint(code, side, rate_text, amount_text)

        raw = self._send_private(endpoint)
        payload = self.normalizer.decode(raw)
        requested_rate, requested_amount = to_decimal(rate_text), to_decimal(amount_text)
        rejected = self.normalizer.rejection(payload, raw.status)
        if rejected is not None:
            logger.info(f"[{self.venue_name}] {side} order rejected: {rejected.message}")
            return self._rejected_order(rejected, side, requested_rate, requested_amount)
        return self.normalizer.order(payload, side, requested_rate, requested_amount, self._now())

    def _place_market_order(
        self, pair: str, side: str, amount: Decimal | int | str
    ) -> OrderResult:
        spec = self._require_capability(self.descriptor.market_order, f"market_{side}")
        self._require_credentials()
        code = self._normalize_symbol_to_venue(pair)
        amount_text = format_decimal(amount)
        endpoint = self._market_order_endpoint(code, side, amount_text)

        raw = self._send_private(endpoint)
        payload = self.normalizer.decode(raw)
        requested_amount = to_decimal(amount_text)
        rejected = self.normalizer.rejection(payload, raw.status)
        if rejected is not None:
            logger.info(f"[{self.venue_name}] market {side} order rejected: {rejected.message}")
            return self._rejected_order(rejected, side, None, requested_amount)
        return self.normalizer.order(
            payload, side, None, requested_amount, self._now(), spec=spec
        )

    def _rejected_order(
        self, rejected: ExchangeRejected, side: str, rate: Decimal | None, amount: Decimal
    ) -> OrderResult:
        return OrderResult(
            success=False,
            id="",
            rate=rate,
            amount=amount,
            order_type=side,
            ltimestamp=self._now(),
            error=rejected.message,
            error_code=str(rejected.code),
        )

    # --- Endpoint hooks, implemented per exchange ---

    @abc.abstractmethod
    def _ticker_endpoint(self, code: str) -> Endpoint:
        raise NotImplementedError

    @abc.abstractmethod
    def _depth_endpoint(self, code: str) -> Endpoint:
        raise NotImplementedError

    def _balance_endpoint(self) -> Endpoint:
        raise UnsupportedOperation(f"[{self.venue_name}] balance is not supported.")

    def _open_orders_endpoint(self, code: str | None) -> Endpoint:
        raise UnsupportedOperation(f"[{self.venue_name}] open_orders is not supported.")

    def _order_endpoint(self, code: str, side: str, rate: str, amount: str) -> Endpoint:
        raise UnsupportedOperation(f"[{self.venue_name}] orders are not supported.")

    def _market_order_endpoint(self, code: str, side: str, amount: str) -> Endpoint:
        raise UnsupportedOperation(f"[{self.venue_name}] market orders are not supported.")

    def _cancel_endpoint(self, order_id: str, code: str | None) -> Endpoint:
        raise UnsupportedOperation(f"[{self.venue_name}] cancel is not supported.")

    # --- Request plumbing ---

    def _now(self) -> int:
        return local_timestamp(self._clock)

    def _require_capability(self, spec: Any, operation: str) -> Any:
        if spec is None:
            err_msg = f"[{self.venue_name}] {operation} is not supported."
            raise UnsupportedOperation(err_msg)
        return spec

    def _require_credentials(self) -> None:
        if not self._credentials.is_complete:
            err_msg = f"[{self.venue_name}] API key and secret are required."
            raise AuthMissing(err_msg)

    def _public(self, endpoint: Endpoint) -> Any:
        logger.debug(f"[{self.venue_name}] {endpoint.method} {endpoint.url}")
        raw = self.transport.request(endpoint.method, endpoint.url, params=endpoint.params)
        return self.normalizer.parse(raw)

    def _private(self, endpoint: Endpoint) -> Any:
        return self.normalizer.parse(self._send_private(endpoint))

    def _send_private(self, endpoint: Endpoint) -> RawResponse:
        if self._signer is None:
            err_msg = f"[{self.venue_name}] No signing scheme configured."
            raise UnsupportedOperation(err_msg)
        self._require_credentials()
        nonce = self.descriptor.nonce_format(self._nonce.issue())
        request = self._signer.prepare(
            endpoint.method,
            endpoint.url,
            self._credentials,
            nonce,
            params=endpoint.params,
            body=endpoint.body,
        )
        logger.debug(f"[{self.venue_name}] {request.method} {endpoint.url} (signed)")
        return self.transport.request(
            request.method, request.url, headers=request.headers, content=request.content
        )
