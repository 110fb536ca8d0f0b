"""Notification documents."""

from .Notification import Notification

__all__ = ["Notification"]
