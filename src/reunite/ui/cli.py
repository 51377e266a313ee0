from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

import uvicorn
from dotenv import load_dotenv

from reunite.app import build_agent, run_once
from reunite.config import ConfigurationError, configure_logging, get_agent_config
from reunite.config.engine import DEFAULT_ENV_FILE
from reunite.ui.http import create_app

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from reunite.config import AgentConfig

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Lost & found ledger matching agent")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=Path(DEFAULT_ENV_FILE),
        help=f"Dotenv file with credentials and settings (default: {DEFAULT_ENV_FILE})",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Root log level (DEBUG, INFO, WARNING, ...; default: LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the agent with its HTTP trigger endpoint")
    serve.add_argument("--host", type=str, help="Bind address (defaults to HOST or 0.0.0.0)")
    serve.add_argument("--port", type=int, help="Bind port (defaults to PORT or 3000)")

    subparsers.add_parser("run-once", help="Run a single reconciliation and exit")

    return parser.parse_args(list(argv))


def _resolve_env_file(env_file: Path) -> Path:
    if env_file == Path(DEFAULT_ENV_FILE) and not env_file.exists():
        return Path(".env")
    return env_file


def _load_config(env_file: Path) -> AgentConfig:
    env_file = _resolve_env_file(env_file)
    if load_dotenv(env_file):
        log.info("Loaded settings from %s", env_file)
    try:
        return get_agent_config(env_file=env_file)
    except ConfigurationError:
        log.exception("Refusing to start with invalid configuration")
        sys.exit(1)


def _serve(config: AgentConfig, *, host: str | None, port: int | None) -> None:
    app = create_app(build_agent(config), config.server)
    uvicorn.run(
        app,
        host=host or config.server.host,
        port=port or config.server.port,
        log_config=None,
    )


def _run_once(config: AgentConfig) -> int:
    record = asyncio.run(run_once(config))
    log.info("Run %s finished with outcome %s", record.run_id, record.outcome)
    if record.outcome is None or record.outcome.is_error:
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=parsed_args.log_level)

    config = _load_config(parsed_args.env_file)
    if parsed_args.command == "serve":
        _serve(config, host=parsed_args.host, port=parsed_args.port)
    elif parsed_args.command == "run-once":
        sys.exit(_run_once(config))
    else:
        log.error("Unsupported command: %s", parsed_args.command)
        sys.exit(2)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
