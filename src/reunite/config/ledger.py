"""Ledger endpoint and signing credential configuration."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from urllib.parse import urlsplit

from web3 import Web3

from .env import env_float, require_env_vars
from .errors import ConfigurationError, InvalidCredentialError

DEFAULT_POLL_INTERVAL_SECONDS = 15.0
DEFAULT_CONFIRMATION_TIMEOUT_SECONDS = 180.0

_PRIVATE_KEY_PATTERN = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


class LedgerTransport(StrEnum):
    STREAMING = "streaming"
    POLLING = "polling"


@dataclass(frozen=True, slots=True)
class LedgerCredential:
    """Signing key of the matching engine wallet."""

    private_key: str = field(repr=False)

    @classmethod
    def parse(cls, raw: str) -> LedgerCredential:
        value = raw.strip()
        if not _PRIVATE_KEY_PATTERN.match(value):
            length = len(value)
            raise InvalidCredentialError(
                f"MATCHING_ENGINE_PRIVATE_KEY is invalid (length {length}); it must be "
                "64 hex characters, or 66 with a '0x' prefix"
            )
        if not value.startswith("0x"):
            value = f"0x{value}"
        return cls(private_key=value)


@dataclass(frozen=True, slots=True)
class LedgerConfig:
    rpc_url: str
    contract_address: str
    credential: LedgerCredential
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    confirmation_timeout_seconds: float = DEFAULT_CONFIRMATION_TIMEOUT_SECONDS

    @property
    def transport(self) -> LedgerTransport:
        return transport_for_url(self.rpc_url)


def transport_for_url(url: str) -> LedgerTransport:
    scheme = urlsplit(url).scheme.lower()
    if scheme in {"ws", "wss"}:
        return LedgerTransport.STREAMING
    if scheme in {"http", "https"}:
        return LedgerTransport.POLLING
    raise ConfigurationError(f"Unsupported ledger endpoint scheme: {scheme or url!r}")


def parse_contract_address(raw: str) -> str:
    value = raw.strip()
    if not Web3.is_address(value):
        raise InvalidCredentialError(f"CONTRACT_ADDRESS is not a valid address: {value!r}")
    return Web3.to_checksum_address(value)


def get_ledger_config() -> LedgerConfig:
    values = require_env_vars(
        ("LEDGER_RPC_URL", "CONTRACT_ADDRESS", "MATCHING_ENGINE_PRIVATE_KEY")
    )
    rpc_url = values["LEDGER_RPC_URL"]
    transport_for_url(rpc_url)
    return LedgerConfig(
        rpc_url=rpc_url,
        contract_address=parse_contract_address(values["CONTRACT_ADDRESS"]),
        credential=LedgerCredential.parse(values["MATCHING_ENGINE_PRIVATE_KEY"]),
        poll_interval_seconds=env_float(
            "LEDGER_POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL_SECONDS, minimum=0.1
        ),
        confirmation_timeout_seconds=env_float(
            "LEDGER_CONFIRMATION_TIMEOUT_SECONDS",
            DEFAULT_CONFIRMATION_TIMEOUT_SECONDS,
            minimum=1.0,
        ),
    )
