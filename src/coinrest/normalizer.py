from collections.abc import Iterable
from decimal import Decimal
from typing import Any, Final

from coinrest.descriptors import (
    PAIR,
    BalanceLayout,
    ExchangeDescriptor,
    OrderSpec,
    Path,
    SuccessFlag,
)
from coinrest.errors import ConnectionFailed, ExchangeRejected, MalformedResponse
from coinrest.models import (
    Balance,
    BalanceEntry,
    CancelResult,
    Depth,
    DepthLevel,
    OpenOrder,
    OrderResult,
    Ticker,
)
from coinrest.transport import RawResponse
from coinrest.utils.decimals import loads_exact, to_decimal
from coinrest.utils.time import to_epoch_seconds

_MISSING: Final = object()


class ResponseNormalizer:
    """Converts raw exchange responses into canonical entities.

    One instance serves one exchange and is driven entirely by that
    exchange's `ExchangeDescriptor`:

    1.  Decoding: the body is parsed as JSON with every fractional number
        kept as a `Decimal`. Unparseable bodies become `MalformedResponse`
        (2xx) or `ConnectionFailed` (anything else).
    2.  Rejection detection: the descriptor's `ErrorSpec` decides whether
        a decoded body is a business-level rejection; if so an
        `ExchangeRejected` carrying the exchange's own code is produced.
    3.  Mapping: fields are looked up by path and converted exactly.
        Required fields that are missing raise `MalformedResponse`;
        optional ones become ``None``.
    """

    def __init__(self, descriptor: ExchangeDescriptor) -> None:
        self.descriptor = descriptor
        self.venue = descriptor.name
        self._pair_names = descriptor.reverse_pairs()

    # --- Decoding and rejection detection ---

    def decode(self, raw: RawResponse) -> Any:
        """Parses the body of ``raw`` as JSON, without any float intermediates."""
        text = raw.body.strip()
        if not text:
            if raw.ok:
                err_msg = f"[{self.venue}] Empty body from {raw.url}"
                raise MalformedResponse(err_msg)
            err_msg = f"[{self.venue}] HTTP {raw.status} with empty body from {raw.url}"
            raise ConnectionFailed(err_msg)
        try:
            return loads_exact(text)
        except ValueError as e:
            if raw.ok:
                err_msg = f"[{self.venue}] Unparseable JSON from {raw.url}"
                raise MalformedResponse(err_msg) from e
            err_msg = f"[{self.venue}] HTTP {raw.status} from {raw.url}"
            raise ConnectionFailed(err_msg) from e

    def rejection(self, payload: Any, status: int) -> ExchangeRejected | None:
        """Returns the rejection described by ``payload``, or None on success."""
        spec = self.descriptor.errors
        ok = 200 <= status < 300

        code = self._find(payload, spec.code_path) if spec.code_path else _MISSING
        message = _MISSING
        for path in spec.message_paths:
            candidate = self._find(payload, path)
            if _is_present(candidate):
                message = candidate
                break

        flag = _MISSING
        if spec.flag is not SuccessFlag.HTTP_STATUS and spec.flag_path is not None:
            flag = self._find(payload, spec.flag_path)

        if flag is not _MISSING:
            failed = not ok or not _flag_is_success(flag, spec.flag)
        else:
            failed = not ok or _is_present(code) or _is_present(message)
        if not failed:
            return None

        message_text = _describe(message) if _is_present(message) else None
        if _is_present(code):
            code_value = code[0] if isinstance(code, list) else code
        elif message_text is not None:
            code_value = message_text
        else:
            code_value = status
        if message_text is None:
            message_text = f"error code {code_value}" if ok else f"HTTP {status}"
        return ExchangeRejected(code_value, message_text, venue=self.venue)

    def check(self, payload: Any, status: int) -> None:
        """Raises `ExchangeRejected` if ``payload`` reports a rejection."""
        rejected = self.rejection(payload, status)
        if rejected is not None:
            raise rejected

    def parse(self, raw: RawResponse) -> Any:
        """Decodes ``raw`` and raises on any rejection; returns the payload."""
        payload = self.decode(raw)
        self.check(payload, raw.status)
        return payload

    # --- Canonical entities ---

    def ticker(self, payload: Any, pair_code: str, ltimestamp: int) -> Ticker:
        spec = self.descriptor.ticker
        data = self._require(payload, spec.root, pair_code)
        return Ticker(
            ask=self._decimal(data, spec.ask, pair_code),
            bid=self._decimal(data, spec.bid, pair_code),
            last=self._decimal(data, spec.last, pair_code),
            high=self._optional_decimal(data, spec.high, pair_code),
            low=self._optional_decimal(data, spec.low, pair_code),
            volume=self._optional_decimal(data, spec.volume, pair_code),
            ltimestamp=ltimestamp,
            timestamp=self._optional_epoch(data, spec.timestamp, pair_code),
            vwap=self._optional_decimal(data, spec.vwap, pair_code),
        )

    def depth(self, payload: Any, pair_code: str, ltimestamp: int) -> Depth:
        spec = self.descriptor.depth
        data = self._require(payload, spec.root, pair_code)
        return Depth(
            asks=self._levels(data, spec.asks, pair_code),
            bids=self._levels(data, spec.bids, pair_code),
            ltimestamp=ltimestamp,
        )

    def balance(self, payload: Any) -> Balance:
        spec = self.descriptor.balance
        if spec is None:
            err_msg = f"[{self.venue}] No balance mapping configured."
            raise MalformedResponse(err_msg)
        data = self._require(payload, spec.root)

        balances: Balance = {}
        if spec.layout is BalanceLayout.RECORDS:
            for record in self._as_list(data, spec.root):
                code = str(self._require(record, (spec.code_key,))).strip().lower()
                if not code:
                    continue
                balances[code] = BalanceEntry(
                    amount=self._decimal(record, (spec.amount_key,)),
                    available=self._decimal(record, (spec.available_key,)),
                )
        elif spec.layout is BalanceLayout.RESERVED_SUFFIX:
            mapping = self._as_dict(data, spec.root)
            for key, value in mapping.items():
                reserved_key = f"{key}{spec.reserved_suffix}"
                if reserved_key not in mapping:
                    continue
                available = self._decimal(mapping, (key,))
                reserved = self._decimal(mapping, (reserved_key,))
                balances[key.lower()] = BalanceEntry(
                    amount=available + reserved, available=available
                )
        else:
            amounts = self._as_dict(self._require(data, spec.amount_path), spec.amount_path)
            available = self._as_dict(
                self._require(data, spec.available_path), spec.available_path
            )
            for key in amounts:
                if key not in available:
                    err_msg = f"[{self.venue}] Balance for '{key}' has no available amount."
                    raise MalformedResponse(err_msg)
                balances[key.lower()] = BalanceEntry(
                    amount=self._decimal(amounts, (key,)),
                    available=self._decimal(available, (key,)),
                )
        return balances

    def order(
        self,
        payload: Any,
        side: str,
        rate: Decimal | None,
        amount: Decimal,
        ltimestamp: int,
        spec: OrderSpec | None = None,
    ) -> OrderResult:
        """Maps an order acknowledgement; unmapped fields echo the request.

        ``spec`` defaults to the descriptor's limit-order mapping.
        """
        spec = spec or self.descriptor.order
        if spec is None:
            err_msg = f"[{self.venue}] No order mapping configured."
            raise MalformedResponse(err_msg)
        data = self._require(payload, spec.root)

        order_type = side
        if spec.order_type is not None:
            reported = self._find(data, spec.order_type)
            if _is_present(reported):
                reported = str(reported)
                if reported in ("buy", "sell") or side in reported.split("_"):
                    order_type = reported
                else:
                    order_type = f"{side}_{reported}"

        return OrderResult(
            success=True,
            id=str(self._require(data, spec.id)),
            rate=self._decimal(data, spec.rate) if spec.rate is not None else rate,
            amount=self._decimal(data, spec.amount) if spec.amount is not None else amount,
            order_type=order_type,
            ltimestamp=ltimestamp,
            timestamp=self._optional_epoch(data, spec.created_at),
        )

    def open_orders(self, payload: Any) -> list[OpenOrder]:
        spec = self.descriptor.open_orders
        if spec is None:
            err_msg = f"[{self.venue}] No open-orders mapping configured."
            raise MalformedResponse(err_msg)
        container = self._require(payload, spec.root)

        entries: list[tuple[str, Any]]
        if spec.keyed_by_id:
            # An empty result may come back as [] instead of {}.
            if container == []:
                return []
            mapping = self._as_dict(container, spec.root)
            entries = [(str(order_id), entry) for order_id, entry in mapping.items()]
        else:
            entries = [
                (str(self._require(entry, (spec.id_key,))), entry)
                for entry in self._as_list(container, spec.root)
            ]

        orders = []
        for order_id, entry in entries:
            pair = None
            if spec.pair_key is not None:
                pair_code = self._find(entry, (spec.pair_key,))
                if _is_present(pair_code):
                    pair = self._pair_names.get(str(pair_code), str(pair_code))
            side = str(self._require(entry, (spec.side_key,)))
            orders.append(
                OpenOrder(
                    id=order_id,
                    pair=pair,
                    rate=self._decimal(entry, (spec.rate_key,)),
                    amount=self._decimal(entry, (spec.amount_key,)),
                    order_type=spec.side_map.get(side, side),
                )
            )
        return orders

    def cancel(self, payload: Any, status: int, order_id: str) -> CancelResult:
        """Folds a cancel response into a `CancelResult`, rejections included.

        A cancel only counts as successful when the body is a JSON object
        and, for exchanges that send a success flag, the flag is present.

        Raises:
            MalformedResponse: If a 2xx body has neither shape.
        """
        rejected = self.rejection(payload, status)
        if rejected is not None:
            return CancelResult(
                order_id=order_id,
                success=False,
                error=rejected.message,
                error_code=str(rejected.code),
            )
        if not isinstance(payload, dict):
            err_msg = f"[{self.venue}] Cancel of order {order_id} got a non-object body."
            raise MalformedResponse(err_msg)
        spec = self.descriptor.errors
        if spec.flag is not SuccessFlag.HTTP_STATUS and spec.flag_path is not None:
            self._require(payload, spec.flag_path)
        return CancelResult(order_id=order_id, success=True)

    # --- Path helpers ---

    def _find(self, data: Any, path: Path | None, pair_code: str | None = None) -> Any:
        if path is None:
            return _MISSING
        node = data
        for step in path:
            if step == PAIR and pair_code is not None:
                step = pair_code
            if isinstance(step, int):
                if not isinstance(node, list) or not -len(node) <= step < len(node):
                    return _MISSING
                node = node[step]
            else:
                if not isinstance(node, dict) or step not in node:
                    return _MISSING
                node = node[step]
        return node

    def _require(self, data: Any, path: Path, pair_code: str | None = None) -> Any:
        value = self._find(data, path, pair_code)
        if value is _MISSING or value is None:
            err_msg = f"[{self.venue}] Missing required field {_render(path, pair_code)}"
            raise MalformedResponse(err_msg)
        return value

    def _decimal(self, data: Any, path: Path, pair_code: str | None = None) -> Decimal:
        value = self._require(data, path, pair_code)
        try:
            return to_decimal(value)
        except ValueError as e:
            err_msg = (
                f"[{self.venue}] Field {_render(path, pair_code)} is not a number: "
                f"{value!r}"
            )
            raise MalformedResponse(err_msg) from e

    def _optional_decimal(
        self, data: Any, path: Path | None, pair_code: str | None = None
    ) -> Decimal | None:
        value = self._find(data, path, pair_code)
        if value is _MISSING or value is None or value == "":
            return None
        return self._decimal(data, path, pair_code)  # type: ignore[arg-type]

    def _optional_epoch(
        self, data: Any, path: Path | None, pair_code: str | None = None
    ) -> int | None:
        value = self._find(data, path, pair_code)
        if not _is_present(value):
            return None
        if isinstance(value, Decimal):
            value = int(value)
        try:
            return to_epoch_seconds(value)
        except ValueError as e:
            err_msg = f"[{self.venue}] Bad timestamp {_render(path or (), pair_code)}: {value!r}"
            raise MalformedResponse(err_msg) from e

    def _levels(self, data: Any, path: Path, pair_code: str) -> tuple[DepthLevel, ...]:
        levels = []
        for level in self._as_list(self._require(data, path, pair_code), path):
            if not isinstance(level, list) or len(level) < 2:
                err_msg = f"[{self.venue}] Malformed depth level {level!r}"
                raise MalformedResponse(err_msg)
            levels.append(
                DepthLevel(price=self._decimal(level, (0,)), size=self._decimal(level, (1,)))
            )
        return tuple(levels)

    def _as_list(self, value: Any, path: Path) -> list[Any]:
        if not isinstance(value, list):
            err_msg = f"[{self.venue}] Expected a list at {_render(path)}"
            raise MalformedResponse(err_msg)
        return value

    def _as_dict(self, value: Any, path: Path) -> dict[str, Any]:
        if not isinstance(value, dict):
            err_msg = f"[{self.venue}] Expected an object at {_render(path)}"
            raise MalformedResponse(err_msg)
        return value


def _is_present(value: Any) -> bool:
    if value is _MISSING or value is None:
        return False
    if isinstance(value, str | list | dict):
        return len(value) > 0
    return True


def _flag_is_success(flag: Any, style: SuccessFlag) -> bool:
    if style is SuccessFlag.BOOLEAN:
        return flag is True or (isinstance(flag, str) and flag.lower() == "true")
    if isinstance(flag, bool):
        return flag
    try:
        return to_decimal(flag) == 1
    except ValueError:
        return False


def _describe(message: Any) -> str:
    if isinstance(message, list):
        return ", ".join(str(item) for item in message)
    if isinstance(message, dict):
        return "; ".join(f"{key}: {_describe(value)}" for key, value in message.items())
    return str(message)


def _render(path: Iterable[str | int], pair_code: str | None = None) -> str:
    steps = [pair_code if step == PAIR and pair_code else str(step) for step in path]
    return "/".join(steps) or "<root>"
