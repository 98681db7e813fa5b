from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from cardhook.common.keys import StaticKeyRegistry


class ConfigError(ValueError):
    pass


def load_dotenv(path: str | os.PathLike = ".env") -> None:
    """
    Minimal .env loader.
    - KEY=VALUE lines, optional quotes around VALUE, '#' comments.
    - Already-set environment variables win.
    """
    p = Path(path)
    if not p.is_file():
        return
    for raw in p.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        k, v = (s.strip() for s in line.split("=", 1))
        if len(v) >= 2 and v[0] == v[-1] and v[0] in {'"', "'"}:
            v = v[1:-1]
        if k:
            os.environ.setdefault(k, v)


def _key_mapping(raw: str, source: str) -> dict[str, str]:
    try:
        obj = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{source}: invalid JSON ({e.msg})") from e
    if not isinstance(obj, dict) or not all(isinstance(k, str) and isinstance(v, str) for k, v in obj.items()):
        raise ConfigError(f"{source}: expected a JSON object of api key id -> base64 secret")
    return obj


def _reject_status(raw: str) -> int:
    try:
        status = int(raw)
    except ValueError as e:
        raise ConfigError(f"CARDHOOK_REJECT_STATUS: not an integer: {raw!r}") from e
    if status not in {401, 403}:
        raise ConfigError(f"CARDHOOK_REJECT_STATUS: expected 401 or 403, got {status}")
    return status


@dataclass(frozen=True)
class Settings:
    api_keys: StaticKeyRegistry
    reject_status: int
    log_level: str

    @staticmethod
    def load() -> "Settings":
        load_dotenv(os.getenv("CARDHOOK_ENV_FILE", ".env"))

        secrets: dict[str, str] = {}
        keys_file = os.getenv("CARDHOOK_API_KEYS_FILE")
        if keys_file:
            try:
                text = Path(keys_file).read_text(encoding="utf-8")
            except OSError as e:
                raise ConfigError(f"CARDHOOK_API_KEYS_FILE: cannot read {keys_file}: {e.strerror}") from e
            secrets.update(_key_mapping(text, "CARDHOOK_API_KEYS_FILE"))
        inline = os.getenv("CARDHOOK_API_KEYS")
        if inline:
            secrets.update(_key_mapping(inline, "CARDHOOK_API_KEYS"))

        try:
            registry = StaticKeyRegistry(secrets)
        except ValueError as e:
            raise ConfigError(str(e)) from e

        return Settings(
            api_keys=registry,
            reject_status=_reject_status(os.getenv("CARDHOOK_REJECT_STATUS", "401")),
            log_level=os.getenv("CARDHOOK_LOG_LEVEL", "INFO").upper(),
        )
