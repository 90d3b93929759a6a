# src/coinrest/__init__.py
"""coinrest: A uniform REST client for cryptocurrency exchanges.

One synchronous interface (ticker, depth, balance, open orders, buy, sell,
cancel, cancel-all) over several exchanges with differing wire formats,
authentication schemes and nonce rules. Every monetary value is an exact
`decimal.Decimal`.

Key sub-packages:
- `adapters`: One declarative adapter per exchange, plus `create_adapter`.
- `utils`: Exact decimal handling and timestamp helpers.
"""

import importlib.metadata

from coinrest.adapters import create_adapter
from coinrest.errors import (
    AuthMissing,
    ConnectionFailed,
    ExchangeClientError,
    ExchangeRejected,
    MalformedResponse,
    UnsupportedOperation,
    UnsupportedPair,
)
from coinrest.models import (
    Balance,
    BalanceEntry,
    CancelResult,
    Credentials,
    Depth,
    DepthLevel,
    OpenOrder,
    OrderResult,
    Ticker,
)

try:
    __version__: str = importlib.metadata.version("coinrest")
except importlib.metadata.PackageNotFoundError:
    # Not installed, e.g. running from a source checkout.
    __version__ = "0.0.0-dev"

__all__ = [
    "AuthMissing",
    "Balance",
    "BalanceEntry",
    "CancelResult",
    "ConnectionFailed",
    "Credentials",
    "Depth",
    "DepthLevel",
    "ExchangeClientError",
    "ExchangeRejected",
    "MalformedResponse",
    "OpenOrder",
    "OrderResult",
    "Ticker",
    "UnsupportedOperation",
    "UnsupportedPair",
    "create_adapter",
]
