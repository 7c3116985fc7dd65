"""Fulfillment settings, read from the environment on each call."""

import os
from dataclasses import dataclass


def _float_env(name, default):
    value = os.environ.get(name)
    return float(value) if value not in (None, "") else default


def _int_env(name, default):
    value = os.environ.get(name)
    return int(value) if value not in (None, "") else default


@dataclass(frozen=True)
class FulfillmentSettings:
    max_attempts: int = 3
    backoff_seconds: float = 5.0
    render_timeout_seconds: float = 60.0
    notify_timeout_seconds: float = 30.0
    reconcile_stale_seconds: float = 900.0

    @classmethod
    def from_env(cls):
        return cls(
            max_attempts=_int_env("FULFILLMENT_MAX_ATTEMPTS", 3),
            backoff_seconds=_float_env("FULFILLMENT_BACKOFF_SECONDS", 5.0),
            render_timeout_seconds=_float_env("RENDER_TIMEOUT_SECONDS", 60.0),
            notify_timeout_seconds=_float_env("NOTIFY_TIMEOUT_SECONDS", 30.0),
            reconcile_stale_seconds=_float_env("RECONCILE_STALE_SECONDS", 900.0),
        )


def get_settings() -> FulfillmentSettings:
    return FulfillmentSettings.from_env()
