from __future__ import annotations

import argparse

import uvicorn

from .config import load_settings
from .logging_setup import configure_logging


def main() -> None:
    parser = argparse.ArgumentParser(description="rss_aggregator HTTP server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on (default: 8000)")
    args = parser.parse_args()

    configure_logging(load_settings().log_level)
    uvicorn.run("rss_aggregator.server:create_app", factory=True, host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
