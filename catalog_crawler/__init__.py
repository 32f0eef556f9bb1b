"""Paginated catalog crawler with per-page checkpointing."""

__version__ = "0.1.0"
