"""Command-line interface for inspecting WalletGuard configuration and artifacts."""

from .main import main

__all__ = ["main"]
