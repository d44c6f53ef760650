"""
Main CLI entry point.

This module contains the main function that serves as the entry point for the
WalletGuard CLI.
"""

import logging
import os
import sys

from .parser import create_parser

logger = logging.getLogger("walletguard")


def _configure_logging(debug: bool) -> None:
    if logger.hasHandlers():
        return
    handler = logging.StreamHandler(sys.stderr)
    if debug:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
        )
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def main(argv=None) -> int:
    """Main entry point for the WalletGuard CLI."""
    parser = create_parser()
    args_ns = parser.parse_args(argv)

    debug = args_ns.debug or bool(os.getenv("WALLETGUARD_DEBUG"))
    _configure_logging(debug)
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.debug("Debug logging enabled.")

    if not hasattr(args_ns, "func"):
        parser.print_help()
        return 1

    return 0 if args_ns.func(args_ns) else 1


if __name__ == "__main__":
    sys.exit(main())
