from __future__ import annotations

import argparse
import base64
import logging
import os
import sys
from typing import Mapping

import requests

from cardhook.common.keys import StaticKeyRegistry
from cardhook.common.signing import SignatureError, SignatureSigner, SignatureVerifier, SignedRequest


log = logging.getLogger("cardhook.processor")

ENDPOINT_PATHS = {
    "authorizations": "/transactions/authorizations",
    "adjustments": "/transactions/adjustments",
}


def signed_headers(*, api_key: str, secret_b64: str, endpoint: str, body: bytes) -> dict[str, str]:
    """Headers the payment processor attaches to a webhook call."""
    signer = SignatureSigner(StaticKeyRegistry({api_key: secret_b64}))
    h = signer.sign_request(body, endpoint, api_key)
    h["Content-Type"] = "application/json"
    return h


def check_response_signature(
    *,
    api_key: str,
    secret_b64: str,
    headers: Mapping[str, str],
    content: bytes,
) -> bool:
    """
    Verify the receiver's signed reply. The receiver signs whatever bytes it
    writes, and a missing body contributes nothing, so the raw content is
    hashed as-is.
    """
    verifier = SignatureVerifier(StaticKeyRegistry({api_key: secret_b64}))
    try:
        signed = SignedRequest.from_headers(headers, content, api_key_id=api_key)
    except SignatureError as e:
        log.warning("response not signed: %s", e)
        return False
    return verifier.verify(signed)


def post_signed(
    *,
    url: str,
    api_key: str,
    secret_b64: str,
    endpoint: str,
    body: bytes,
    path: str,
    timeout: float = 10.0,
) -> requests.Response:
    headers = signed_headers(api_key=api_key, secret_b64=secret_b64, endpoint=endpoint, body=body)
    verify = os.getenv("CARDHOOK_TLS_CA")
    return requests.post(url.rstrip("/") + path, data=body, headers=headers, timeout=timeout, verify=verify or True)


def main() -> int:
    ap = argparse.ArgumentParser(description="Send a signed webhook call the way the payment processor does.")
    ap.add_argument("--url", default=os.getenv("CARDHOOK_URL", "http://127.0.0.1:1080"))
    ap.add_argument("--api-key", default=os.getenv("CARDHOOK_API_KEY", ""))
    ap.add_argument("--api-secret", default=os.getenv("CARDHOOK_API_SECRET", ""), help="base64-encoded secret")
    ap.add_argument("--endpoint", choices=sorted(ENDPOINT_PATHS), default="authorizations")
    ap.add_argument("--path", default="", help="Override the URL path (default depends on --endpoint).")
    ap.add_argument("--body", default="{}", help="Raw request body, sent and signed byte for byte.")
    ap.add_argument("--timeout", type=float, default=10.0)
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    if not args.api_key or not args.api_secret:
        print("--api-key and --api-secret are required", file=sys.stderr)
        return 1
    try:
        base64.b64decode(args.api_secret, validate=True)
    except ValueError:
        print("--api-secret must be base64", file=sys.stderr)
        return 1

    body = args.body.encode("utf-8")
    try:
        r = post_signed(
            url=args.url,
            api_key=args.api_key,
            secret_b64=args.api_secret,
            endpoint=args.endpoint,
            body=body,
            path=args.path or ENDPOINT_PATHS[args.endpoint],
            timeout=args.timeout,
        )
    except requests.RequestException as e:
        print(f"receiver unreachable: {type(e).__name__}: {e}", file=sys.stderr)
        return 2

    if r.status_code >= 300:
        print(f"{r.status_code} {r.text}", file=sys.stderr)
        return 3

    ok = check_response_signature(api_key=args.api_key, secret_b64=args.api_secret, headers=r.headers, content=r.content)
    if not ok:
        print("response signature invalid", file=sys.stderr)
        return 4

    print(f"status={r.status_code} signature=ok body={r.content.decode('utf-8', errors='replace')!r}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
