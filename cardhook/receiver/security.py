from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from cardhook.common.signing import MissingHeaderError, SignatureVerifier, SignedRequest


log = logging.getLogger("cardhook.receiver")


async def require_signature(request: Request, verifier: SignatureVerifier, reject_status: int) -> SignedRequest:
    """
    Verify the caller's signature over the raw body before any handler runs.

    Every failure gets the same generic rejection; the cause is only logged.
    """
    # raw bytes, before any JSON parsing
    body = await request.body()
    try:
        signed = SignedRequest.from_headers(request.headers, body)
    except MissingHeaderError as e:
        log.warning("invalid signature, aborting: %s", e)
        raise HTTPException(status_code=reject_status, detail="unauthorized")

    if not verifier.verify(signed):
        log.warning("invalid signature, aborting: path=%s endpoint=%r", request.url.path, signed.endpoint)
        raise HTTPException(status_code=reject_status, detail="unauthorized")
    return signed
