"""This package contains the exchange-specific adapters.

Each adapter is a small module that declares its exchange's
`ExchangeDescriptor` (URLs, pair codes, field locations, signing scheme,
nonce scale) and maps each operation to an endpoint. The operations
themselves are implemented once in `coinrest.adapters.base.MarketAdapter`.

Use `create_adapter` to obtain an adapter by exchange name.
"""

from loguru import logger

from coinrest.adapters.base import Endpoint, MarketAdapter, canonical_pair
from coinrest.adapters.bitbank import BitbankAdapter
from coinrest.adapters.coincheck import CoincheckAdapter
from coinrest.adapters.kraken import KrakenAdapter
from coinrest.adapters.quoine import QuoineAdapter
from coinrest.adapters.zaif import ZaifAdapter
from coinrest.config import Settings, get_api_credentials
from coinrest.models import Credentials
from coinrest.transport import HttpTransport

ADAPTERS: dict[str, type[MarketAdapter]] = {
    cls.descriptor.name: cls
    for cls in (BitbankAdapter, CoincheckAdapter, KrakenAdapter, QuoineAdapter, ZaifAdapter)
}


def create_adapter(
    name: str,
    credentials: Credentials | None = None,
    transport: HttpTransport | None = None,
    settings: Settings | None = None,
) -> MarketAdapter:
    """Builds the adapter for the named exchange.

    Args:
        name: Exchange name, case-insensitive (e.g. 'bitbank').
        credentials: API key and secret. When omitted they are looked up
            in the keyring and then in the environment.
        transport: HTTP transport to use; one is built from the network
            settings when omitted.
        settings: Settings to build the transport from; defaults to the
            process-wide settings.

    Raises:
        ValueError: If no adapter exists for ``name``.
    """
    key = name.strip().lower()
    try:
        adapter_cls = ADAPTERS[key]
    except KeyError:
        err_msg = f"Unknown exchange '{name}'. Known: {', '.join(sorted(ADAPTERS))}"
        raise ValueError(err_msg) from None

    if credentials is None:
        credentials = get_api_credentials(key)
    if transport is None:
        network = (settings or Settings.get_instance()).network
        transport = HttpTransport(
            timeout=network.timeout(), max_chain_depth=network.max_chain_depth
        )
    logger.debug(f"[{key}] Adapter created ({credentials!r}).")
    return adapter_cls(credentials=credentials, transport=transport)


__all__ = [
    "ADAPTERS",
    "BitbankAdapter",
    "CoincheckAdapter",
    "Endpoint",
    "KrakenAdapter",
    "MarketAdapter",
    "QuoineAdapter",
    "ZaifAdapter",
    "canonical_pair",
    "create_adapter",
]
