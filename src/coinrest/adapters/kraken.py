from coinrest.adapters.base import Endpoint, MarketAdapter
from coinrest.descriptors import PAIR, DepthSpec, ErrorSpec, ExchangeDescriptor, TickerSpec
from coinrest.nonce import centiseconds_of_whole_second


class KrakenAdapter(MarketAdapter):
    """Adapter for the Kraken public REST API.

    Only market data is implemented. Kraken keys every result by its own
    pair code (``XXBTZJPY``) and reports failures as a non-empty ``error``
    list such as ``["EQuery:Unknown asset pair"]``. Statistics come as
    ``[today, last 24 hours]`` pairs; the 24 hour value is used.
    """

    descriptor = ExchangeDescriptor(
        name="kraken",
        public_url="https://api.kraken.com/0/public",
        private_url="https://api.kraken.com/0/private",
        pairs={"btc_jpy": "XXBTZJPY", "eth_jpy": "XETHZJPY"},
        ticker=TickerSpec(
            root=("result", PAIR),
            ask=("a", 0),
            bid=("b", 0),
            last=("c", 0),
            high=("h", 1),
            low=("l", 1),
            volume=("v", 1),
            vwap=("p", 1),
        ),
        depth=DepthSpec(root=("result", PAIR)),
        errors=ErrorSpec(code_path=("error",), message_paths=(("error",),)),
        nonce_scale=centiseconds_of_whole_second,
    )

    def _ticker_endpoint(self, code: str) -> Endpoint:
        return Endpoint(f"{self.descriptor.public_url}/Ticker", params={"pair": code})

    def _depth_endpoint(self, code: str) -> Endpoint:
        return Endpoint(f"{self.descriptor.public_url}/Depth", params={"pair": code})
