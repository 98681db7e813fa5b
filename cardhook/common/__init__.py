from .keys import KeyResolver, StaticKeyRegistry
from .models import AuthorizationResponse, AuthorizationStatus
from .signing import (
    ALGORITHM,
    HeaderEncodingError,
    KeyNotFoundError,
    MissingHeaderError,
    SignatureError,
    SignatureSigner,
    SignatureVerifier,
    SignedRequest,
    SignedResponse,
    compute_mac,
)

__all__ = [
    "ALGORITHM",
    "HeaderEncodingError",
    "AuthorizationResponse",
    "AuthorizationStatus",
    "KeyNotFoundError",
    "KeyResolver",
    "MissingHeaderError",
    "SignatureError",
    "SignatureSigner",
    "SignatureVerifier",
    "SignedRequest",
    "SignedResponse",
    "StaticKeyRegistry",
    "compute_mac",
]
