"""Errors raised while loading the agent's settings."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Settings are present but unusable; the agent refuses to start."""


class MissingConfigurationError(ConfigurationError):
    """Required settings are absent or blank."""


class InvalidCredentialError(ConfigurationError):
    """The engine signing key or the contract address failed validation.

    Raised at startup and again when a reloaded credential snapshot is bad, in
    which case only the affected run fails.
    """
