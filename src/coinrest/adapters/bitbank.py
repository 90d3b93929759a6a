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
from coinrest.nonce import centiseconds_of_whole_second
from coinrest.signing import SigningScheme

PAIRS = {
    "btc_jpy": "btc_jpy",
    "xrp_jpy": "xrp_jpy",
    "ltc_btc": "ltc_btc",
    "eth_btc": "eth_btc",
    "mona_jpy": "mona_jpy",
    "mona_btc": "mona_btc",
    "bcc_jpy": "bcc_jpy",
    "bcc_btc": "bcc_btc",
}


class BitbankAdapter(MarketAdapter):
    """Adapter for the bitbank.cc public and private REST APIs.

    Every response is wrapped as ``{"success": 1, "data": {...}}``; a failed
    request carries ``success: 0`` and a numeric ``data.code``. Private
    requests use header-path signing.
    """

    descriptor = ExchangeDescriptor(
        name="bitbank",
        public_url="https://public.bitbank.cc",
        private_url="https://api.bitbank.cc/v1",
        pairs=PAIRS,
        ticker=TickerSpec(
            root=("data",),
            ask=("sell",),
            bid=("buy",),
            last=("last",),
            high=("high",),
            low=("low",),
            volume=("vol",),
            timestamp=("timestamp",),
        ),
        depth=DepthSpec(root=("data",)),
        errors=ErrorSpec(
            flag=SuccessFlag.NUMERIC,
            flag_path=("success",),
            code_path=("data", "code"),
        ),
        signing=SigningScheme.HEADER_PATH,
        nonce_scale=centiseconds_of_whole_second,
        balance=BalanceSpec(
            layout=BalanceLayout.RECORDS,
            root=("data", "assets"),
            code_key="asset",
            amount_key="onhand_amount",
            available_key="free_amount",
        ),
        order=OrderSpec(
            root=("data",),
            id=("order_id",),
            rate=("price",),
            amount=("start_amount",),
            order_type=("side",),
            created_at=("ordered_at",),
        ),
        open_orders=OpenOrdersSpec(
            root=("data", "orders"),
            id_key="order_id",
            pair_key="pair",
            rate_key="price",
            amount_key="remaining_amount",
            side_key="side",
        ),
        cancel=CancelSpec(requires_pair=True),
    )

    def _ticker_endpoint(self, code: str) -> Endpoint:
        return Endpoint(f"{self.descriptor.public_url}/{code}/ticker")

    def _depth_endpoint(self, code: str) -> Endpoint:
        return Endpoint(f"{self.descriptor.public_url}/{code}/depth")

    def _balance_endpoint(self) -> Endpoint:
        return Endpoint(f"{self.descriptor.private_url}/user/assets")

    def _open_orders_endpoint(self, code: str | None) -> Endpoint:
        params = {"pair": code} if code is not None else None
        return Endpoint(f"{self.descriptor.private_url}/user/spot/active_orders", params=params)

    def _order_endpoint(self, code: str, side: str, rate: str, amount: str) -> Endpoint:
        body = {
            "pair": code,
            "amount": amount,
            "price": rate,
            "side": side,
            "type": "limit",
        }
        return Endpoint(f"{self.descriptor.private_url}/user/spot/order", body=body, method="POST")

    def _cancel_endpoint(self, order_id: str, code: str | None) -> Endpoint:
        # Bitbank order ids are integers on the wire.
        body = {"pair": code, "order_id": int(order_id) if order_id.isdigit() else order_id}
        return Endpoint(
            f"{self.descriptor.private_url}/user/spot/cancel_order", body=body, method="POST"
        )
