from __future__ import annotations

import logging
import time
from typing import Callable

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse

from cardhook import __version__
from cardhook.common.keys import KeyResolver
from cardhook.common.models import AuthorizationResponse, AuthorizationStatus
from cardhook.common.signing import SignatureSigner, SignatureVerifier, SignedRequest
from cardhook.receiver.config import Settings
from cardhook.receiver.security import require_signature


log = logging.getLogger("cardhook.receiver")

Authorizer = Callable[[SignedRequest], AuthorizationResponse]
Adjuster = Callable[[SignedRequest, str | None], None]


def approve_all(_request: SignedRequest) -> AuthorizationResponse:
    return AuthorizationResponse(
        status=AuthorizationStatus.APPROVED,
        status_detail=AuthorizationStatus.APPROVED.value,
        message="Ok",
    )


def record_nothing(_request: SignedRequest, _adjustment_type: str | None) -> None:
    return None


def create_app(
    settings: Settings | None = None,
    *,
    resolver: KeyResolver | None = None,
    authorize: Authorizer = approve_all,
    adjust: Adjuster = record_nothing,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """
    Webhook receiver for card transactions.

    authorize / adjust stand in for the business logic; they only ever see
    requests whose signature has already been verified.
    """
    if settings is None:
        settings = Settings.load()
    if resolver is None:
        resolver = settings.api_keys
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    verifier = SignatureVerifier(resolver)
    signer = SignatureSigner(resolver, clock=clock)

    app = FastAPI(title="Card Transactions Webhook", version=__version__)

    async def _verified(request: Request) -> SignedRequest:
        return await require_signature(request, verifier, settings.reject_status)

    @app.get("/healthz")
    async def healthz():
        return {"ok": True}

    @app.post("/transactions/authorizations")
    async def authorizations(signed: SignedRequest = Depends(_verified)):
        result = authorize(signed)
        log.info("authorization processed: endpoint=%r status=%s", signed.endpoint, result.status)

        # sign these exact bytes; letting the framework serialize the model could differ
        body = result.to_bytes()
        headers = signer.sign(body, signed.endpoint, signed.api_key_id)
        # headers go in before the body is handed to the transport
        return Response(content=body, headers=headers, media_type="application/json")

    @app.post("/transactions/adjustments")
    @app.post("/transactions/adjustments/{adjustment_type:path}")
    async def adjustments(adjustment_type: str | None = None, signed: SignedRequest = Depends(_verified)):
        adjust(signed, adjustment_type)
        log.info("adjustment processed: endpoint=%r type=%s", signed.endpoint, adjustment_type)

        # no body at all: not b"{}", b"null" or b" "
        headers = signer.sign(None, signed.endpoint, signed.api_key_id)
        return Response(content=None, headers=headers, media_type="application/json")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_request: Request, exc: Exception):
        log.error("unhandled error: %s", type(exc).__name__)
        return JSONResponse(status_code=500, content={"detail": f"internal_error: {type(exc).__name__}"})

    return app


app = create_app()
