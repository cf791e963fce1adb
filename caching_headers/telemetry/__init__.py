"""Telemetry package: structured logging and request correlation."""

from __future__ import annotations

from caching_headers.telemetry.logging import RequestIdMiddleware, configure_logging

__all__ = [
    "RequestIdMiddleware",
    "configure_logging",
]
