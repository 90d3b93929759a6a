"""Declarative description of an exchange's REST surface.

An `ExchangeDescriptor` holds everything that differs between exchanges
but is pure data: base URLs, the pair-code table, the signing-scheme tag,
the nonce scale, and where each canonical field lives in the exchange's
JSON. The generic `ResponseNormalizer` and `MarketAdapter` consume it.

A `Path` is a sequence of dict keys and list indices. The `PAIR` token in a
path is replaced by the exchange's pair code at normalisation time.
"""

import enum
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Final

from coinrest.nonce import NonceScale, milliseconds
from coinrest.signing import SigningScheme

Path = tuple[str | int, ...]

PAIR: Final[str] = "{pair}"


class SuccessFlag(enum.Enum):
    """How an exchange reports success of a request."""

    # JSON true/false.
    BOOLEAN = "boolean"
    # 1/0, either as a number or as the string "1"/"0".
    NUMERIC = "numeric"
    # No flag in the body; a 2xx status means success.
    HTTP_STATUS = "http_status"


class BalanceLayout(enum.Enum):
    # A list of records, one per currency.
    RECORDS = "records"
    # Flat map of available amounts, with "<code>_reserved" for held amounts.
    RESERVED_SUFFIX = "reserved_suffix"
    # Two parallel maps, one of totals and one of available amounts.
    SPLIT_MAPS = "split_maps"


@dataclass(frozen=True)
class ErrorSpec:
    """Where an exchange puts its rejection signal.

    A body is a rejection when the success flag is present and false, or
    when there is no flag and the code/message path holds a non-empty value,
    or when neither is present and the HTTP status is not 2xx.
    """

    flag: SuccessFlag = SuccessFlag.HTTP_STATUS
    flag_path: Path | None = None
    code_path: Path | None = None
    message_paths: tuple[Path, ...] = ()


@dataclass(frozen=True)
class TickerSpec:
    """Ticker field locations. Unmapped optional fields become "not provided"."""

    ask: Path
    bid: Path
    last: Path
    root: Path = ()
    high: Path | None = None
    low: Path | None = None
    volume: Path | None = None
    timestamp: Path | None = None
    vwap: Path | None = None


@dataclass(frozen=True)
class DepthSpec:
    asks: Path = ("asks",)
    bids: Path = ("bids",)
    root: Path = ()


@dataclass(frozen=True)
class BalanceSpec:
    layout: BalanceLayout
    root: Path = ()
    # RECORDS
    code_key: str = "asset"
    amount_key: str = "amount"
    available_key: str = "available"
    # RESERVED_SUFFIX
    reserved_suffix: str = "_reserved"
    # SPLIT_MAPS, relative to root
    amount_path: Path = ()
    available_path: Path = ()


@dataclass(frozen=True)
class OrderSpec:
    """Order acknowledgement fields. ``None`` means echo the requested value."""

    id: Path
    root: Path = ()
    rate: Path | None = None
    amount: Path | None = None
    order_type: Path | None = None
    created_at: Path | None = None


@dataclass(frozen=True)
class OpenOrdersSpec:
    root: Path
    rate_key: str
    amount_key: str
    side_key: str
    # True when orders come as {order_id: {...}} instead of a list.
    keyed_by_id: bool = False
    id_key: str = "id"
    pair_key: str | None = None
    side_map: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CancelSpec:
    """Cancellation is supported; success is judged by the `ErrorSpec`."""

    requires_pair: bool = False


@dataclass(frozen=True)
class ExchangeDescriptor:
    """Static description of one exchange.

    The optional ``balance``/``order``/``market_order``/``open_orders``/
    ``cancel`` mappings double as the capability set: an operation mapped
    to ``None`` is not offered.
    """

    name: str
    public_url: str
    private_url: str
    pairs: Mapping[str, str]
    ticker: TickerSpec
    depth: DepthSpec
    errors: ErrorSpec = field(default_factory=ErrorSpec)
    signing: SigningScheme | None = None
    nonce_scale: NonceScale = milliseconds
    nonce_format: Callable[[int], str] = str
    balance: BalanceSpec | None = None
    order: OrderSpec | None = None
    market_order: OrderSpec | None = None
    open_orders: OpenOrdersSpec | None = None
    cancel: CancelSpec | None = None

    def reverse_pairs(self) -> dict[str, str]:
        """Maps exchange pair codes back to canonical pair names."""
        return {code: pair for pair, code in self.pairs.items()}
