"""Post documents."""

from .Post import Post, FEED_VISIBILITIES

__all__ = ["Post", "FEED_VISIBILITIES"]
