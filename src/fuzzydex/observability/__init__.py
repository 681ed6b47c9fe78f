"""Logging helpers for fuzzydex."""

from fuzzydex.observability.logging import JsonFormatter, configure_logging


__all__ = ["JsonFormatter", "configure_logging"]
