"""
Launch the stock ticker SSE server.

Usage:
    python -m ticker_stream
    python -m ticker_stream --port 9000 --reload
"""

import argparse

import uvicorn

from .config import get_settings


def parse_args(argv=None):
    """Parse command-line arguments."""
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Stock Ticker SSE Server")
    parser.add_argument("--host", default=settings.host, help=f"Bind address (default: {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Port (default: {settings.port})")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development)")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    uvicorn.run("ticker_stream.main:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
