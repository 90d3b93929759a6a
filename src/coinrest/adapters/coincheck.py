from coinrest.adapters.base import Endpoint, MarketAdapter
from coinrest.descriptors import (
    BalanceLayout,
    BalanceSpec,
    CancelSpec,
    DepthSpec,
    ErrorSpec,
    ExchangeDescriptor,
    OpenOrdersSpec,
    OrderSpec,
    SuccessFlag,
    TickerSpec,
)
from coinrest.nonce import milliseconds
from coinrest.signing import SigningScheme

BASE_URL = "https://coincheck.com"


class CoincheckAdapter(MarketAdapter):
    """Adapter for the Coincheck REST API.

    Coincheck only trades BTC/JPY. Private responses carry a boolean
    ``success`` and, on failure, a free-text ``error``. Besides limit orders,
    Coincheck takes market orders. Orders are cancelled individually with a
    DELETE on the order's URL.
    """

    descriptor = ExchangeDescriptor(
        name="coincheck",
        public_url=BASE_URL,
        private_url=BASE_URL,
        pairs={"btc_jpy": "btc_jpy"},
        ticker=TickerSpec(
            ask=("ask",),
            bid=("bid",),
            last=("last",),
            high=("high",),
            low=("low",),
            volume=("volume",),
            timestamp=("timestamp",),
        ),
        depth=DepthSpec(),
        errors=ErrorSpec(
            flag=SuccessFlag.BOOLEAN,
            flag_path=("success",),
            message_paths=(("error",),),
        ),
        signing=SigningScheme.URL_BODY,
        nonce_scale=milliseconds,
        balance=BalanceSpec(layout=BalanceLayout.RESERVED_SUFFIX),
        order=OrderSpec(
            id=("id",),
            rate=("rate",),
            amount=("amount",),
            order_type=("order_type",),
            created_at=("created_at",),
        ),
        # Market acknowledgements carry no rate; amount echoes the request.
        market_order=OrderSpec(
            id=("id",),
            order_type=("order_type",),
            created_at=("created_at",),
        ),
        open_orders=OpenOrdersSpec(
            root=("orders",),
            id_key="id",
            pair_key="pair",
            rate_key="rate",
            amount_key="pending_amount",
            side_key="order_type",
        ),
        cancel=CancelSpec(),
    )

    def _ticker_endpoint(self, code: str) -> Endpoint:
        return Endpoint(f"{BASE_URL}/api/ticker", params={"pair": code})

    def _depth_endpoint(self, code: str) -> Endpoint:
        return Endpoint(f"{BASE_URL}/api/order_books", params={"pair": code})

    def _balance_endpoint(self) -> Endpoint:
        return Endpoint(f"{BASE_URL}/api/accounts/balance")

    def _open_orders_endpoint(self, code: str | None) -> Endpoint:
        # The exchange lists every open order; there is only one pair anyway.
        return Endpoint(f"{BASE_URL}/api/exchange/orders/opens")

    def _order_endpoint(self, code: str, side: str, rate: str, amount: str) -> Endpoint:
        body = {"rate": rate, "amount": amount, "order_type": side, "pair": code}
        return Endpoint(f"{BASE_URL}/api/exchange/orders", body=body, method="POST")

    def _cancel_endpoint(self, order_id: str, code: str | None) -> Endpoint:
        return Endpoint(f"{BASE_URL}/api/exchange/orders/{order_id}", method="DELETE")

    def _market_order_endpoint(self, code: str, side: str, amount: str) -> Endpoint:
        # A market buy is sized in JPY, a market sell in BTC.
        amount_key = "market_buy_amount" if side == "buy" else "amount"
        body = {amount_key: amount, "order_type": f"market_{side}", "pair": code}
        return Endpoint(f"{BASE_URL}/api/exchange/orders", body=body, method="POST")
