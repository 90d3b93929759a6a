"""Canonical entities returned by every exchange adapter."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import NamedTuple


class DepthLevel(NamedTuple):
    """A single price level of an order book."""

    price: Decimal
    size: Decimal


@dataclass(frozen=True)
class Ticker:
    """Snapshot of the best bid/ask, last trade and 24h statistics for a pair.

    Fields an exchange does not publish are ``None`` ("not provided"); they
    are never filled with zero or an estimate.
    """

    ask: Decimal
    bid: Decimal
    last: Decimal
    high: Decimal | None
    low: Decimal | None
    volume: Decimal | None
    ltimestamp: int
    timestamp: int | None = None
    vwap: Decimal | None = None


@dataclass(frozen=True)
class Depth:
    """An order book, with levels kept in the order the exchange sent them."""

    asks: tuple[DepthLevel, ...]
    bids: tuple[DepthLevel, ...]
    ltimestamp: int


@dataclass(frozen=True)
class BalanceEntry:
    """Total and tradable holdings of one currency."""

    amount: Decimal
    available: Decimal


# Keyed by lower-case currency code, e.g. "jpy", "btc".
Balance = dict[str, BalanceEntry]


@dataclass(frozen=True)
class OrderResult:
    """Outcome of a single buy/sell request.

    A rejection by the exchange is reported here with ``success=False`` and
    the exchange's error text in ``error``; transport failures raise instead.
    ``rate`` is ``None`` for a market order acknowledged without a price.
    """

    success: bool
    id: str
    rate: Decimal | None
    amount: Decimal
    order_type: str
    ltimestamp: int
    error: str | None = None
    error_code: str | None = None
    timestamp: int | None = None


@dataclass(frozen=True)
class OpenOrder:
    """An outstanding order; ``amount`` is the unfilled remainder."""

    id: str
    pair: str | None
    rate: Decimal
    amount: Decimal
    order_type: str


@dataclass(frozen=True)
class CancelResult:
    """Outcome of cancelling one order."""

    order_id: str
    success: bool
    error: str | None = None
    error_code: str | None = None


@dataclass(frozen=True)
class Credentials:
    """API key and secret for one exchange account.

    Both values are masked in ``repr`` so they cannot leak through logs or
    tracebacks that format the object.
    """

    api_key: str = field(default="", repr=False)
    api_secret: str = field(default="", repr=False)

    @property
    def is_complete(self) -> bool:
        """True when both the key and the secret are present."""
        return bool(self.api_key) and bool(self.api_secret)

    def __repr__(self) -> str:
        state = "complete" if self.is_complete else "missing"
        return f"Credentials(<{state}>)"
