from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from typing import Callable, Mapping

from cardhook.common.keys import KeyResolver


ALGORITHM = "hmac-sha256"

HEADER_ENDPOINT = "X-Endpoint"
HEADER_TIMESTAMP = "X-Timestamp"
HEADER_SIGNATURE = "X-Signature"
HEADER_API_KEY = "X-Api-Key"

log = logging.getLogger("cardhook.signing")


class SignatureError(Exception):
    pass


class MissingHeaderError(SignatureError):
    def __init__(self, header: str):
        super().__init__(f"missing header: {header}")
        self.header = header


class KeyNotFoundError(SignatureError):
    def __init__(self, api_key_id: str):
        super().__init__(f"api key not registered: {api_key_id}")
        self.api_key_id = api_key_id


class HeaderEncodingError(SignatureError):
    def __init__(self, value: str):
        super().__init__(f"header value is not latin-1: {value!r}")
        self.value = value


def _header_bytes(value: str) -> bytes:
    # HTTP header values travel as latin-1; this recovers the exact wire bytes.
    try:
        return value.encode("latin-1")
    except UnicodeEncodeError as e:
        raise HeaderEncodingError(value) from e


def compute_mac(secret: bytes, *, timestamp: str, endpoint: str, body: bytes | None) -> bytes:
    """
    HMAC-SHA256 over timestamp || endpoint || body.

    No separators and no re-encoding of the body. body=None means there is
    no body at all and nothing is fed to the hash for it; a placeholder such
    as b"{}", b"null" or b" " is a real body and changes the code.
    """
    if not secret:
        raise ValueError("refusing to compute a MAC with an empty secret")
    mac = hmac.new(secret, digestmod=hashlib.sha256)
    mac.update(_header_bytes(timestamp))
    mac.update(_header_bytes(endpoint))
    if body is not None:
        mac.update(body)
    return mac.digest()


def format_signature_header(mac: bytes) -> str:
    return f"{ALGORITHM} {base64.b64encode(mac).decode('ascii')}"


def parse_signature_header(value: str) -> tuple[str, str]:
    """Split "<algorithm> <base64-signature>" into its two parts."""
    algorithm, _, signature = value.strip().partition(" ")
    return algorithm, signature.strip()


def _required(headers: Mapping[str, str], name: str) -> str:
    v = headers.get(name)
    if v is None or v == "":
        raise MissingHeaderError(name)
    return v


@dataclass(frozen=True)
class SignedRequest:
    """
    Inbound call as seen by the verifier.

    raw_body is exactly what came off the wire; it is never parsed and
    re-serialized before verification.
    """

    endpoint: str
    timestamp: str
    api_key_id: str
    algorithm: str
    signature: str
    raw_body: bytes

    @staticmethod
    def from_headers(
        headers: Mapping[str, str],
        raw_body: bytes,
        *,
        api_key_id: str | None = None,
    ) -> "SignedRequest":
        """
        Build from transport headers. api_key_id overrides X-Api-Key, which
        signed responses do not carry.
        """
        algorithm, signature = parse_signature_header(_required(headers, HEADER_SIGNATURE))
        return SignedRequest(
            endpoint=_required(headers, HEADER_ENDPOINT),
            timestamp=_required(headers, HEADER_TIMESTAMP),
            api_key_id=api_key_id if api_key_id is not None else _required(headers, HEADER_API_KEY),
            algorithm=algorithm,
            signature=signature,
            raw_body=raw_body,
        )


@dataclass(frozen=True)
class SignedResponse:
    endpoint: str
    timestamp: str
    body: bytes | None
    signature: str

    def headers(self) -> dict[str, str]:
        return {
            HEADER_ENDPOINT: self.endpoint,
            HEADER_TIMESTAMP: self.timestamp,
            HEADER_SIGNATURE: self.signature,
        }


class SignatureVerifier:
    def __init__(self, resolver: KeyResolver):
        self._resolver = resolver

    def verify(self, request: SignedRequest) -> bool:
        if request.algorithm != ALGORITHM:
            log.warning("unsupported signature algorithm, expecting %s, got %r", ALGORITHM, request.algorithm)
            return False

        secret = self._resolver.resolve(request.api_key_id)
        if not secret:
            log.warning("api key not registered: %r", request.api_key_id)
            return False

        # every raw byte on the wire counts, even when it is zero-length
        try:
            expected = compute_mac(
                secret,
                timestamp=request.timestamp,
                endpoint=request.endpoint,
                body=request.raw_body,
            )
        except HeaderEncodingError as e:
            log.warning("cannot reconstruct signed bytes: %s", e)
            return False

        try:
            received = base64.b64decode(request.signature.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError):
            log.warning("malformed signature encoding for endpoint %r", request.endpoint)
            return False

        if not hmac.compare_digest(received, expected):
            log.warning(
                "signature mismatch. received %s, calculated %s",
                request.signature,
                base64.b64encode(expected).decode("ascii"),
            )
            return False
        return True


class SignatureSigner:
    """
    Signs outbound messages. The timestamp is always taken from the clock at
    signing time, never copied from the inbound request.
    """

    def __init__(self, resolver: KeyResolver, clock: Callable[[], float] = time.time):
        self._resolver = resolver
        self._clock = clock

    def _secret(self, api_key_id: str) -> bytes:
        secret = self._resolver.resolve(api_key_id)
        if not secret:
            raise KeyNotFoundError(api_key_id)
        return secret

    def sign_response(self, body: bytes | None, endpoint: str, api_key_id: str) -> SignedResponse:
        timestamp = str(int(self._clock()))
        mac = compute_mac(self._secret(api_key_id), timestamp=timestamp, endpoint=endpoint, body=body)
        return SignedResponse(
            endpoint=endpoint,
            timestamp=timestamp,
            body=body,
            signature=format_signature_header(mac),
        )

    def sign(self, body: bytes | None, endpoint: str, api_key_id: str) -> dict[str, str]:
        """Headers to set on the response before its body is written."""
        return self.sign_response(body, endpoint, api_key_id).headers()

    def sign_request(self, body: bytes, endpoint: str, api_key_id: str) -> dict[str, str]:
        """Headers for an outbound call, as the payment processor sends them."""
        h = self.sign(body, endpoint, api_key_id)
        h[HEADER_API_KEY] = api_key_id
        return h
