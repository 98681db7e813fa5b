from __future__ import annotations

import base64

import pytest

from cardhook.common.keys import StaticKeyRegistry
from cardhook.receiver.config import Settings

API_KEY = "Lp0g+cwb19eEfTn1YIOydEnqPcZOg8YxHctnMe+1cQA="
API_SECRET_B64 = "uC8fVXzXMyaw1PseV452i6ozQwIIa4olcSpjuvn5E4E="
SECRET = base64.b64decode(API_SECRET_B64)
FIXED_NOW = 1700000000.0


@pytest.fixture
def registry() -> StaticKeyRegistry:
    return StaticKeyRegistry({API_KEY: API_SECRET_B64})


@pytest.fixture
def settings(registry: StaticKeyRegistry) -> Settings:
    return Settings(api_keys=registry, reject_status=401, log_level="DEBUG")
