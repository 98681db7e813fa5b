from __future__ import annotations

import base64
import binascii
from types import MappingProxyType
from typing import Mapping, Protocol


class KeyResolver(Protocol):
    def resolve(self, api_key_id: str) -> bytes | None:
        """Return the raw secret for api_key_id, or None when it is not registered."""
        ...


class StaticKeyRegistry:
    """
    Read-only registry of api key id -> secret.

    Secrets are kept base64-encoded (the way they are provisioned) and
    decoded on every lookup. The mapping is frozen at construction.
    """

    def __init__(self, secrets_b64: Mapping[str, str]):
        for key_id, secret in secrets_b64.items():
            if not isinstance(key_id, str) or not isinstance(secret, str):
                raise ValueError("api key ids and secrets must be strings")
            try:
                raw = base64.b64decode(secret.encode("ascii"), validate=True)
            except (binascii.Error, UnicodeEncodeError) as e:
                raise ValueError(f"secret for api key {key_id!r} is not valid base64") from e
            if not raw:
                raise ValueError(f"secret for api key {key_id!r} is empty")
        self._secrets = MappingProxyType(dict(secrets_b64))

    def __len__(self) -> int:
        return len(self._secrets)

    def __contains__(self, api_key_id: object) -> bool:
        return api_key_id in self._secrets

    def key_ids(self) -> list[str]:
        return sorted(self._secrets)

    def resolve(self, api_key_id: str) -> bytes | None:
        secret = self._secrets.get(api_key_id)
        if secret is None:
            return None
        return base64.b64decode(secret.encode("ascii"))
