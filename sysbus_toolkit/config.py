"""Runtime settings, read from the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .constants import DEFAULT_JOB_TIMEOUT_S, DEFAULT_SIGNAL_BUFFER

OVERFLOW_POLICIES = ("block", "drop_oldest", "drop_newest")


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {raw!r}")
    return value


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    job_timeout: float = DEFAULT_JOB_TIMEOUT_S
    signal_buffer: int = DEFAULT_SIGNAL_BUFFER
    overflow_policy: str = "drop_oldest"
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    wifi_iface: str = "wlan0"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        if env is None:
            env = os.environ

        policy = env.get("SYSBUS_OVERFLOW_POLICY", "drop_oldest").strip().lower()
        if policy not in OVERFLOW_POLICIES:
            raise ValueError(
                f"SYSBUS_OVERFLOW_POLICY must be one of {', '.join(OVERFLOW_POLICIES)}, got {policy!r}"
            )

        return cls(
            job_timeout=_float(env, "SYSBUS_JOB_TIMEOUT", DEFAULT_JOB_TIMEOUT_S),
            signal_buffer=_int(env, "SYSBUS_SIGNAL_BUFFER", DEFAULT_SIGNAL_BUFFER),
            overflow_policy=policy,
            log_level=env.get("SYSBUS_LOG_LEVEL", "INFO").upper(),
            api_host=env.get("SYSBUS_API_HOST", "0.0.0.0"),
            api_port=_int(env, "SYSBUS_API_PORT", 3000),
            wifi_iface=env.get("SYSBUS_WIFI_IFACE", "wlan0"),
        )
