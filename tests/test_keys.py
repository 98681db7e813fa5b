from __future__ import annotations

import base64

import pytest

from cardhook.common.keys import StaticKeyRegistry
from conftest import API_KEY, API_SECRET_B64, SECRET


def test_resolve_decodes_secret(registry):
    assert registry.resolve(API_KEY) == SECRET


def test_unknown_key_is_explicitly_none(registry):
    assert registry.resolve("missing") is None
    assert "missing" not in registry


def test_registry_is_not_affected_by_source_mutation():
    source = {API_KEY: API_SECRET_B64}
    reg = StaticKeyRegistry(source)
    source["other"] = base64.b64encode(b"x").decode()
    source[API_KEY] = base64.b64encode(b"changed").decode()
    assert reg.key_ids() == [API_KEY]
    assert reg.resolve(API_KEY) == SECRET


@pytest.mark.parametrize("secret", ["%%%", "", "YQ"])
def test_invalid_secrets_rejected_at_construction(secret):
    with pytest.raises(ValueError):
        StaticKeyRegistry({API_KEY: secret})
