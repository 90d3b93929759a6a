"""Request signing schemes.

Each exchange authenticates private requests with an HMAC over a message
built from the nonce and some part of the request. The message layout is
byte-exact: a reordered field, a different JSON separator or a float that
renders differently is not caught locally, the exchange simply refuses the
signature. Every strategy therefore serialises a body exactly once and
both signs and sends those same bytes.
"""

import abc
import enum
import hashlib
import hmac
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar
from urllib.parse import urlencode, urlsplit

from coinrest.models import Credentials

JSON_SEPARATORS = (",", ":")


class SigningScheme(enum.Enum):
    """Tags for the signing schemes used by the supported exchanges."""

    # nonce || path || query, HMAC-SHA256, ACCESS-* headers.
    HEADER_PATH = "A"
    # form body with embedded nonce, HMAC-SHA512, Key/Sign headers.
    FORM_BODY = "B"
    # nonce || url [|| json body], HMAC-SHA256, ACCESS-* headers.
    URL_BODY = "C"


@dataclass(frozen=True)
class SignedRequest:
    """A fully materialised request, ready to hand to the transport."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    content: bytes | None = None


def build_url(url: str, params: Mapping[str, Any] | None = None) -> str:
    """Appends urlencoded ``params`` to ``url`` in insertion order."""
    if not params:
        return url
    return f"{url}?{urlencode(list(params.items()))}"


def dump_json(body: Mapping[str, Any]) -> str:
    """Compact JSON in insertion order, the form every JSON-signing exchange expects."""
    return json.dumps(body, separators=JSON_SEPARATORS, ensure_ascii=False)


class SigningStrategy(abc.ABC):
    """Builds and signs authenticated request material for one exchange."""

    scheme: ClassVar[SigningScheme]
    digestmod: ClassVar[Callable[..., Any]] = hashlib.sha256

    def sign(self, secret: str, message: str) -> str:
        """Returns the hex HMAC digest of ``message`` keyed by ``secret``."""
        return hmac.new(
            secret.encode("utf-8"), message.encode("utf-8"), self.digestmod
        ).hexdigest()

    @abc.abstractmethod
    def prepare(
        self,
        method: str,
        url: str,
        credentials: Credentials,
        nonce: str,
        params: Mapping[str, Any] | None = None,
        body: Mapping[str, Any] | None = None,
    ) -> SignedRequest:
        """Builds the signed request.

        Args:
            method: HTTP method, upper case.
            url: Absolute endpoint URL without query string.
            credentials: The account's API key and secret.
            nonce: The nonce exactly as it is to appear on the wire.
            params: Query parameters (GET).
            body: Body fields (POST/DELETE), in wire order.

        Returns:
            The request with authentication headers and encoded body.
        """
        raise NotImplementedError


class HeaderPathSigner(SigningStrategy):
    """Scheme A: the nonce plus the request path and query are signed.

    For requests with a JSON body the message is the nonce plus the body.
    """

    scheme = SigningScheme.HEADER_PATH
    digestmod = hashlib.sha256

    def message(self, nonce: str, path: str, query: str = "", body: str | None = None) -> str:
        if body is not None:
            return nonce + body
        return nonce + path + (f"?{query}" if query else "")

    def prepare(
        self,
        method: str,
        url: str,
        credentials: Credentials,
        nonce: str,
        params: Mapping[str, Any] | None = None,
        body: Mapping[str, Any] | None = None,
    ) -> SignedRequest:
        full_url = build_url(url, params)
        parts = urlsplit(full_url)
        content = dump_json(body) if body is not None else None
        message = self.message(nonce, parts.path, parts.query, content)
        headers = {
            "ACCESS-KEY": credentials.api_key,
            "ACCESS-NONCE": nonce,
            "ACCESS-SIGNATURE": self.sign(credentials.api_secret, message),
        }
        if content is not None:
            headers["Content-Type"] = "application/json"
        return SignedRequest(
            method=method,
            url=full_url,
            headers=headers,
            content=content.encode("utf-8") if content is not None else None,
        )


class FormBodySigner(SigningStrategy):
    """Scheme B: the form-encoded body, nonce included, is signed with SHA-512."""

    scheme = SigningScheme.FORM_BODY
    digestmod = hashlib.sha512

    def encode_body(self, body: Mapping[str, Any] | None, nonce: str) -> str:
        fields = [(key, value) for key, value in (body or {}).items() if key != "nonce"]
        fields.append(("nonce", nonce))
        return urlencode(fields)

    def prepare(
        self,
        method: str,
        url: str,
        credentials: Credentials,
        nonce: str,
        params: Mapping[str, Any] | None = None,
        body: Mapping[str, Any] | None = None,
    ) -> SignedRequest:
        if method != "POST":
            err_msg = f"Form-body signing only supports POST, not {method}."
            raise ValueError(err_msg)
        content = self.encode_body(body, nonce)
        headers = {
            "Key": credentials.api_key,
            "Sign": self.sign(credentials.api_secret, content),
            "Content-Type": "application/x-www-form-urlencoded",
        }
        return SignedRequest(
            method=method,
            url=build_url(url, params),
            headers=headers,
            content=content.encode("utf-8"),
        )


class UrlBodySigner(SigningStrategy):
    """Scheme C: the nonce plus the full URL (and JSON body, if any) is signed."""

    scheme = SigningScheme.URL_BODY
    digestmod = hashlib.sha256

    def message(self, nonce: str, url: str, body: str = "") -> str:
        return nonce + url + body

    def prepare(
        self,
        method: str,
        url: str,
        credentials: Credentials,
        nonce: str,
        params: Mapping[str, Any] | None = None,
        body: Mapping[str, Any] | None = None,
    ) -> SignedRequest:
        full_url = build_url(url, params)
        content = None if method == "GET" else dump_json(body or {})
        message = self.message(nonce, full_url, content or "")
        headers = {
            "ACCESS-KEY": credentials.api_key,
            "ACCESS-NONCE": nonce,
            "ACCESS-SIGNATURE": self.sign(credentials.api_secret, message),
        }
        if content is not None:
            headers["Content-Type"] = "application/json"
        return SignedRequest(
            method=method,
            url=full_url,
            headers=headers,
            content=content.encode("utf-8") if content is not None else None,
        )


_SIGNERS: dict[SigningScheme, type[SigningStrategy]] = {
    SigningScheme.HEADER_PATH: HeaderPathSigner,
    SigningScheme.FORM_BODY: FormBodySigner,
    SigningScheme.URL_BODY: UrlBodySigner,
}


def signer_for(scheme: SigningScheme) -> SigningStrategy:
    """Returns a signing strategy instance for the given scheme tag."""
    return _SIGNERS[scheme]()
