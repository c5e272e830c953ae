from __future__ import annotations

import hashlib
import os


def compute_mdhash_id(content: str, prefix: str = "") -> str:
    """Content-addressed id: ``prefix`` + sha256 hex digest of ``content``.

    Ids are opaque; callers must not parse them.
    """

    return prefix + hashlib.sha256(content.encode("utf-8")).hexdigest()


def env_str(name: str, default: str) -> str:
    v = os.getenv(name)
    return default if v is None or str(v).strip() == "" else str(v).strip()


def env_int(name: str, default: int) -> int:
    return int(env_str(name, str(default)))


def env_float(name: str, default: float) -> float:
    return float(env_str(name, str(default)))


def env_bool(name: str, default: str = "0") -> bool:
    return env_str(name, default).lower() in {"1", "true", "yes", "on"}


def parse_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes"}


def parse_float(value: object, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
