from __future__ import annotations

import argparse
import asyncio
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from scoutarr.domain.entities.search import SearchStatus
from scoutarr.infrastructure.config import AppConfig, load_config
from scoutarr.infrastructure.logging.setup import configure_logging
from scoutarr.interfaces.api.search.presenter import render_state_json
from scoutarr.interfaces.app import create_app
from scoutarr.interfaces.composition import build_search_runtime

log = structlog.get_logger(__name__)


def _add_config_flags(parser: argparse.ArgumentParser) -> None:
    # Config wiring flags (no business logic)
    parser.add_argument("--config", default=None, help="Path to YAML config file.")
    parser.add_argument("--dotenv", default=None, help="Path to .env file.")
    parser.add_argument("--sources-file", default=None, help="Override sources YAML file.")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="scoutarr")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default=None, help="Bind host (overrides HOST env).")
    serve.add_argument("--port", default=None, type=int, help="Bind port (overrides PORT env).")
    _add_config_flags(serve)

    search = commands.add_parser("search", help="Run one search and print each state as JSON.")
    search.add_argument("query", help="Title to search for.")
    search.add_argument(
        "--load-more",
        action="store_true",
        help="Escalate bot-protected sources when the result is PARTIAL.",
    )
    _add_config_flags(search)

    return parser.parse_args(argv)


def _load(args: argparse.Namespace) -> AppConfig:
    cli_overrides: dict[str, Any] = {}
    if args.sources_file:
        cli_overrides["sources_file"] = args.sources_file
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format

    return load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=cli_overrides,
    )


async def run_search(config: AppConfig, query: str, *, load_more: bool = False) -> int:
    """Drive one search to a resting state, printing every state.

    Returns a process exit code: 1 when the search ended in ERROR, 2 for
    a blank query.
    """
    async with build_search_runtime(config) as runtime:
        service = runtime.service
        subscription = service.observe_state()
        if service.search(query) is None:
            # Blank query: the service stays IDLE and publishes nothing new.
            subscription.close()
            print(render_state_json(service.state), flush=True)
            return 2
        with_initial = True

        async for state in subscription:
            if with_initial:
                # Snapshot taken before search() was issued.
                with_initial = False
                continue
            print(render_state_json(state), flush=True)

            if state.status is SearchStatus.PARTIAL:
                if load_more and service.load_more() is not None:
                    continue
                break
            if state.is_terminal:
                break

        subscription.close()
        return 1 if service.state.status is SearchStatus.ERROR else 0


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Config is loaded exactly once here and handed to the app / runtime.
    """
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)
    config = _load(args)
    log_config = configure_logging(config)

    if args.command == "search":
        return asyncio.run(run_search(config, args.query, load_more=args.load_more))

    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = int(args.port or os.getenv("PORT", "7979"))
    uvicorn.run(create_app(config), host=host, port=port, log_config=log_config)
    return 0


if __name__ == "__main__":
    raise SystemExit(start())
