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
from coinrest.nonce import format_microseconds_as_seconds, microseconds
from coinrest.signing import SigningScheme

PAIRS = {
    "btc_jpy": "btc_jpy",
    "xem_jpy": "xem_jpy",
    "mona_jpy": "mona_jpy",
    "bch_jpy": "bch_jpy",
    "eth_jpy": "eth_jpy",
    "eth_btc": "eth_btc",
}

# Zaif names order sides after the book they rest on.
ACTIONS = {"buy": "bid", "sell": "ask"}


class ZaifAdapter(MarketAdapter):
    """Adapter for the Zaif public API and trade API ("tapi").

    Every private call is a form POST to a single URL, with the operation
    selected by the ``method`` field. Nonces are decimal seconds with
    microsecond precision, e.g. ``1700000000.000001``.
    """

    descriptor = ExchangeDescriptor(
        name="zaif",
        public_url="https://api.zaif.jp/api/1",
        private_url="https://api.zaif.jp/tapi",
        pairs=PAIRS,
        ticker=TickerSpec(
            ask=("ask",),
            bid=("bid",),
            last=("last",),
            high=("high",),
            low=("low",),
            volume=("volume",),
            vwap=("vwap",),
        ),
        depth=DepthSpec(),
        errors=ErrorSpec(
            flag=SuccessFlag.NUMERIC,
            flag_path=("success",),
            message_paths=(("error",),),
        ),
        signing=SigningScheme.FORM_BODY,
        nonce_scale=microseconds,
        nonce_format=format_microseconds_as_seconds,
        balance=BalanceSpec(
            layout=BalanceLayout.SPLIT_MAPS,
            root=("return",),
            amount_path=("deposit",),
            available_path=("funds",),
        ),
        order=OrderSpec(root=("return",), id=("order_id",)),
        open_orders=OpenOrdersSpec(
            root=("return",),
            keyed_by_id=True,
            pair_key="currency_pair",
            rate_key="price",
            amount_key="amount",
            side_key="action",
            side_map={"bid": "buy", "ask": "sell"},
        ),
        cancel=CancelSpec(),
    )

    def _ticker_endpoint(self, code: str) -> Endpoint:
        return Endpoint(f"{self.descriptor.public_url}/ticker/{code}")

    def _depth_endpoint(self, code: str) -> Endpoint:
        return Endpoint(f"{self.descriptor.public_url}/depth/{code}")

    def _trade_api(self, method: str, **fields: str) -> Endpoint:
        return Endpoint(
            self.descriptor.private_url, body={"method": method, **fields}, method="POST"
        )

    def _balance_endpoint(self) -> Endpoint:
        return self._trade_api("get_info")

    def _open_orders_endpoint(self, code: str | None) -> Endpoint:
        if code is None:
            return self._trade_api("active_orders")
        return self._trade_api("active_orders", currency_pair=code)

    def _order_endpoint(self, code: str, side: str, rate: str, amount: str) -> Endpoint:
        return self._trade_api(
            "trade", currency_pair=code, action=ACTIONS[side], price=rate, amount=amount
        )

    def _cancel_endpoint(self, order_id: str, code: str | None) -> Endpoint:
        if code is None:
            return self._trade_api("cancel_order", order_id=order_id)
        return self._trade_api("cancel_order", order_id=order_id, currency_pair=code)
