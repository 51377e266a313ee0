"""Content store adapter."""

from __future__ import annotations

from .client import GatewayContentResolver

__all__ = ["GatewayContentResolver"]
