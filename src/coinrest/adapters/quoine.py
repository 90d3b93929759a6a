from coinrest.adapters.base import Endpoint, MarketAdapter
from coinrest.descriptors import (
    DepthSpec,
    ErrorSpec,
    ExchangeDescriptor,
    OrderSpec,
    TickerSpec,
)
from coinrest.nonce import centiseconds_of_whole_second
from coinrest.signing import SigningScheme

BASE_URL = "https://api.quoine.com"


class QuoineAdapter(MarketAdapter):
    """Adapter for the Quoine REST API.

    Quoine identifies pairs by numeric product id. It has no success flag:
    any non-2xx status is a rejection, described by ``message`` or
    ``errors``. Only market data and limit orders are implemented.
    """

    descriptor = ExchangeDescriptor(
        name="quoine",
        public_url=BASE_URL,
        private_url=BASE_URL,
        pairs={"btc_jpy": "5", "eth_jpy": "29"},
        ticker=TickerSpec(
            ask=("market_ask",),
            bid=("market_bid",),
            last=("last_traded_price",),
            volume=("volume_24h",),
        ),
        depth=DepthSpec(asks=("sell_price_levels",), bids=("buy_price_levels",)),
        errors=ErrorSpec(message_paths=(("message",), ("errors",))),
        signing=SigningScheme.FORM_BODY,
        nonce_scale=centiseconds_of_whole_second,
        order=OrderSpec(
            id=("id",),
            rate=("price",),
            amount=("quantity",),
            order_type=("order_type",),
        ),
    )

    def _ticker_endpoint(self, code: str) -> Endpoint:
        return Endpoint(f"{BASE_URL}/products/{code}")

    def _depth_endpoint(self, code: str) -> Endpoint:
        return Endpoint(f"{BASE_URL}/products/{code}/price_levels")

    def _order_endpoint(self, code: str, side: str, rate: str, amount: str) -> Endpoint:
        body = {
            "order_type": "limit",
            "product_id": code,
            "side": side,
            "quantity": amount,
            "price": rate,
        }
        return Endpoint(f"{BASE_URL}/orders/", body=body, method="POST")
