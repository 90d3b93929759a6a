from decimal import Decimal

import pytest

from coinrest.adapters import (
    BitbankAdapter,
    CoincheckAdapter,
    KrakenAdapter,
    QuoineAdapter,
    ZaifAdapter,
)
from coinrest.errors import ConnectionFailed, ExchangeRejected, MalformedResponse
from coinrest.models import BalanceEntry
from coinrest.normalizer import ResponseNormalizer
from coinrest.transport import RawResponse
from coinrest.utils.decimals import loads_exact


@pytest.fixture
def zaif() -> ResponseNormalizer:
    return ResponseNormalizer(ZaifAdapter.descriptor)


@pytest.fixture
def bitbank() -> ResponseNormalizer:
    return ResponseNormalizer(BitbankAdapter.descriptor)


def raw(body: str, status: int = 200) -> RawResponse:
    return RawResponse(status=status, body=body, url="https://example.com/x")


# --- decode ---


def test_decode_keeps_decimal_precision(zaif: ResponseNormalizer) -> None:
    payload = zaif.decode(raw('{"last": 1234567.12345678}'))
    assert payload["last"] == Decimal("1234567.12345678")


@pytest.mark.parametrize(
    ("body", "status", "error"),
    [
        ("", 200, MalformedResponse),
        ("   ", 200, MalformedResponse),
        ("not json", 200, MalformedResponse),
        ("", 500, ConnectionFailed),
        ("<html>gateway</html>", 502, ConnectionFailed),
    ],
)
def test_decode_failures(zaif: ResponseNormalizer, body: str, status: int, error) -> None:
    with pytest.raises(error):
        zaif.decode(raw(body, status))


# --- rejection detection ---


def test_numeric_flag_with_code(bitbank: ResponseNormalizer) -> None:
    rejected = bitbank.rejection({"success": 0, "data": {"code": 20001}}, 200)
    assert rejected is not None
    assert rejected.code == 20001
    assert rejected.message == "error code 20001"
    assert rejected.venue == "bitbank"


def test_numeric_flag_success(bitbank: ResponseNormalizer) -> None:
    assert bitbank.rejection({"success": 1, "data": {}}, 200) is None


def test_numeric_flag_as_string(zaif: ResponseNormalizer) -> None:
    assert zaif.rejection({"success": "1", "return": {}}, 200) is None
    assert zaif.rejection({"success": "0", "error": "x"}, 200) is not None


def test_message_becomes_code_when_exchange_has_none(zaif: ResponseNormalizer) -> None:
    rejected = zaif.rejection({"success": 0, "error": "insufficient funds"}, 200)
    assert rejected is not None
    assert rejected.code == "insufficient funds"
    assert rejected.message == "insufficient funds"


def test_boolean_flag() -> None:
    normalizer = ResponseNormalizer(CoincheckAdapter.descriptor)
    assert normalizer.rejection({"success": True, "jpy": "1"}, 200) is None
    rejected = normalizer.rejection({"success": False, "error": "Nonce must be incremented"}, 200)
    assert rejected is not None
    assert rejected.message == "Nonce must be incremented"


def test_flag_absent_falls_back_to_message() -> None:
    normalizer = ResponseNormalizer(CoincheckAdapter.descriptor)
    assert normalizer.rejection({"ask": "1"}, 200) is None
    assert normalizer.rejection({"error": "bad"}, 200) is not None


def test_error_list_uses_first_entry_as_code() -> None:
    normalizer = ResponseNormalizer(KrakenAdapter.descriptor)
    assert normalizer.rejection({"error": [], "result": {}}, 200) is None
    rejected = normalizer.rejection({"error": ["EGeneral:Invalid arguments", "EAPI:x"]}, 200)
    assert rejected is not None
    assert rejected.code == "EGeneral:Invalid arguments"
    assert rejected.message == "EGeneral:Invalid arguments, EAPI:x"


def test_http_status_without_details() -> None:
    normalizer = ResponseNormalizer(QuoineAdapter.descriptor)
    rejected = normalizer.rejection({}, 401)
    assert rejected is not None
    assert rejected.code == 401
    assert rejected.message == "HTTP 401"


def test_http_status_with_error_map() -> None:
    normalizer = ResponseNormalizer(QuoineAdapter.descriptor)
    rejected = normalizer.rejection({"errors": {"quantity": ["is too small"]}}, 422)
    assert rejected is not None
    assert rejected.message == "quantity: is too small"


def test_flag_true_but_http_error_is_rejection(bitbank: ResponseNormalizer) -> None:
    assert bitbank.rejection({"success": 1, "data": {}}, 500) is not None


def test_parse_raises_rejection(zaif: ResponseNormalizer) -> None:
    with pytest.raises(ExchangeRejected) as exc_info:
        zaif.parse(raw('{"success": 0, "error": "nonce out of range"}'))
    assert str(exc_info.value) == "[zaif] rejected (nonce out of range): nonce out of range"


# --- canonical entities ---


def test_ticker_optional_fields_are_none() -> None:
    normalizer = ResponseNormalizer(QuoineAdapter.descriptor)
    payload = loads_exact(
        '{"market_ask": "2", "market_bid": "1", "last_traded_price": "1.5", "volume_24h": null}'
    )
    ticker = normalizer.ticker(payload, "5", 123)
    assert (ticker.high, ticker.low, ticker.volume, ticker.vwap) == (None, None, None, None)
    assert ticker.ltimestamp == 123


def test_ticker_non_numeric_field_is_malformed(zaif: ResponseNormalizer) -> None:
    with pytest.raises(MalformedResponse, match="not a number"):
        zaif.ticker({"ask": "n/a", "bid": "1", "last": "1"}, "btc_jpy", 0)


def test_ticker_resolves_pair_in_path() -> None:
    normalizer = ResponseNormalizer(KrakenAdapter.descriptor)
    payload = {
        "error": [],
        "result": {"XETHZJPY": {"a": ["2"], "b": ["1"], "c": ["1.5", "3"]}},
    }
    ticker = normalizer.ticker(payload, "XETHZJPY", 0)
    assert ticker.last == Decimal("1.5")
    with pytest.raises(MalformedResponse, match="result/XXBTZJPY"):
        normalizer.ticker(payload, "XXBTZJPY", 0)


def test_depth_preserves_order_and_rejects_bad_levels(zaif: ResponseNormalizer) -> None:
    depth = zaif.depth({"asks": [["3", "1"], ["1", "1"], ["2", "1"]], "bids": []}, "btc_jpy", 9)
    assert [level.price for level in depth.asks] == [Decimal(3), Decimal(1), Decimal(2)]
    assert depth.bids == ()
    with pytest.raises(MalformedResponse, match="depth level"):
        zaif.depth({"asks": [["3"]], "bids": []}, "btc_jpy", 9)


def test_balance_records_skip_blank_codes(bitbank: ResponseNormalizer) -> None:
    payload = {
        "success": 1,
        "data": {
            "assets": [
                {"asset": "JPY", "onhand_amount": "5", "free_amount": "4"},
                {"asset": "", "onhand_amount": "0", "free_amount": "0"},
            ]
        },
    }
    assert bitbank.balance(payload) == {"jpy": BalanceEntry(Decimal(5), Decimal(4))}


def test_balance_split_maps_need_both_sides(zaif: ResponseNormalizer) -> None:
    payload = {"success": 1, "return": {"deposit": {"btc": 1}, "funds": {}}}
    with pytest.raises(MalformedResponse, match="btc"):
        zaif.balance(payload)


def test_order_echoes_request_where_unmapped(zaif: ResponseNormalizer) -> None:
    result = zaif.order(
        {"success": 1, "return": {"order_id": 5}}, "sell", Decimal("10"), Decimal("0.5"), 77
    )
    assert result.success
    assert (result.id, result.rate, result.amount) == ("5", Decimal("10"), Decimal("0.5"))
    assert result.order_type == "sell"
    assert result.timestamp is None


def test_order_bad_timestamp_is_malformed() -> None:
    normalizer = ResponseNormalizer(CoincheckAdapter.descriptor)
    payload = {
        "success": True,
        "id": 1,
        "rate": "1",
        "amount": "1",
        "order_type": "buy",
        "created_at": "soon",
    }
    with pytest.raises(MalformedResponse, match="Bad timestamp"):
        normalizer.order(payload, "buy", Decimal(1), Decimal(1), 0)


def test_open_orders_keyed_by_id_accepts_empty_list(zaif: ResponseNormalizer) -> None:
    assert zaif.open_orders({"success": 1, "return": []}) == []
    assert zaif.open_orders({"success": 1, "return": {}}) == []


def test_open_orders_unknown_pair_code_is_kept(zaif: ResponseNormalizer) -> None:
    orders = zaif.open_orders(
        {
            "success": 1,
            "return": {"9": {"currency_pair": "zaif_jpy", "action": "bid", "amount": 1, "price": 2}},
        }
    )
    assert orders[0].pair == "zaif_jpy"
    assert orders[0].order_type == "buy"


def test_cancel_folds_rejection(zaif: ResponseNormalizer) -> None:
    failed = zaif.cancel({"success": 0, "error": "order not found"}, 200, "7")
    assert not failed.success
    assert failed.error == "order not found"
    assert zaif.cancel({"success": 1, "return": {"order_id": 7}}, 200, "7").success


@pytest.mark.parametrize("payload", [{}, [], "ok", {"return": {"order_id": 7}}])
def test_cancel_without_success_flag_is_malformed(zaif: ResponseNormalizer, payload) -> None:
    with pytest.raises(MalformedResponse):
        zaif.cancel(payload, 200, "7")
