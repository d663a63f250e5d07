"""Liveness and readiness probes."""

from lms.health.router import router


__all__ = ["router"]
