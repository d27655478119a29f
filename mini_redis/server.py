#!/usr/bin/env python3
"""
Mini-Redis Server Entry Point

This is the main entry point for starting the Mini-Redis engine.

Usage:
    python -m mini_redis.server                 # Default settings (0.0.0.0:6379)
    python -m mini_redis.server 7000            # Custom port
    python -m mini_redis.server --port 7000     # Same, as an option
    python -m mini_redis.server --host 127.0.0.1
    python -m mini_redis.server --debug         # Enable debug logging

Environment Variables:
    MINI_REDIS_HOST             - Server bind address
    MINI_REDIS_PORT             - Server port
    MINI_REDIS_INITIAL_BUCKETS  - Starting bucket count
    MINI_REDIS_DEBUG            - Enable debug mode (true/false)
    MINI_REDIS_LOG_LEVEL        - Log level when not in debug mode
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from .config.settings import settings
from .network.tcp_server import MiniRedisServer
from .storage.table import HashTable


def port_number(value: str) -> int:
    """argparse type for a TCP port in 1..65535."""
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid port number: {value}")
    if port <= 0 or port > 65535:
        raise argparse.ArgumentTypeError(f"Invalid port number: {value}")
    return port


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Mini-Redis: In-Memory Key-Value Engine",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "port_arg",
        nargs="?",
        type=port_number,
        default=None,
        metavar="port",
        help="Port number to listen on (same as --port)",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help="Host address to bind to",
    )

    parser.add_argument(
        "--port",
        type=port_number,
        default=settings.PORT,
        help="Port number to listen on",
    )

    parser.add_argument(
        "--buckets",
        type=int,
        default=settings.INITIAL_BUCKETS,
        help="Initial number of hash table buckets",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    if args.port_arg is not None:
        args.port = args.port_arg
    return args


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    # Keys may carry raw non-UTF-8 bytes; never fail a log line on them
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(errors="backslashreplace")

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the server. Returns the process exit status."""
    args = parse_args(argv)

    setup_logging(debug=args.debug)
    logger = logging.getLogger(__name__)

    # A write to a vanished peer must surface as an error, not kill the process
    if hasattr(signal, "SIGPIPE"):
        signal.signal(signal.SIGPIPE, signal.SIG_IGN)

    try:
        table = HashTable(initial_buckets=args.buckets)
    except MemoryError:
        logger.error("Failed to create hash table")
        return 1

    logger.info("===========================================")
    logger.info("  Mini-Redis - In-Memory Key-Value Store  ")
    logger.info("===========================================")
    logger.info(f"Hash table initialized with {table.num_buckets} buckets")

    server = MiniRedisServer(host=args.host, port=args.port, table=table)

    loop = asyncio.new_event_loop()

    def shutdown(sig: signal.Signals) -> None:
        """Handle shutdown signal."""
        logger.info(f"Received signal {sig.name}, shutting down...")
        server.request_shutdown()

    # Register signal handlers (Unix only)
    if sys.platform != 'win32':
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, shutdown, sig)

    status = 0
    try:
        loop.run_until_complete(server.start())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        loop.run_until_complete(server.stop())
    except OSError as e:
        logger.error(f"Failed to start server on port {args.port}: {e}")
        status = 1
    finally:
        logger.info("Shutting down...")
        table.clear()
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()
        logger.info("Goodbye!")

    return status


if __name__ == "__main__":
    sys.exit(main())
