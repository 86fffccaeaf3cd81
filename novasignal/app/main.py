"""Entrypoint.

Usage:
  python -m novasignal.app.main engine   # stream ticks and log the latest analysis
  python -m novasignal.app.main api      # run FastAPI server (starts its own feed)
  python -m novasignal.app.main scan     # connect, run one scan, print JSON and exit
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

import uvicorn

from novasignal.app.engine import run_engine, run_scan
from novasignal.infrastructure.utils.config import reload_config


def main() -> None:
    parser = argparse.ArgumentParser("novasignal")
    parser.add_argument("command", choices=["engine", "api", "scan"], help="What to run")
    parser.add_argument("--config", type=Path, default=None, help="Path to a YAML config file")
    args = parser.parse_args()

    if args.command == "engine":
        asyncio.run(run_engine(args.config))
        return

    if args.command == "api":
        config = reload_config(args.config)
        uvicorn.run("novasignal.api.server:app", host=config.api.host, port=config.api.port, reload=False)
        return

    if args.command == "scan":
        asyncio.run(run_scan(args.config))
        return


if __name__ == "__main__":
    main()
