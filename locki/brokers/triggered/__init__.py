"""Triggered brokers package."""

from .on_user_stats_written import on_user_stats_written

__all__ = [
    "on_user_stats_written",
]
