# qvote_node/__main__.py
"""
Entry point for running the QVote node as a module:
    python -m qvote_node [--host 0.0.0.0] [--port 8000] [--root .]

Settings come from <root>/qvote_config.yaml plus QVOTE_* environment
variables; --host/--port override the config's server section.
"""

from __future__ import annotations

import argparse
import os

import uvicorn

from .config import get_bind_host, get_bind_port, load_config


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        prog="qvote-node",
        description="Run the QVote quadratic-voting election service",
    )
    p.add_argument(
        "--root",
        default=os.environ.get("QVOTE_ROOT", os.getcwd()),
        help="Directory holding qvote_config.yaml (default: cwd)",
    )
    p.add_argument("--host", default=None, help="Bind address (default: from config)")
    p.add_argument("--port", type=int, default=None, help="Port (default: from config)")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    cfg = load_config(args.root)

    from .qvote_api import create_app

    app = create_app(cfg)
    uvicorn.run(
        app,
        host=args.host or get_bind_host(cfg),
        port=args.port or get_bind_port(cfg),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
