"""CLI entry points for cache maintenance."""

from .maintenance import main as maintenance_main

__all__ = ["maintenance_main"]
