"""Scoring engines for live table tennis matches."""

from . import formats, relay, state, table_tennis

__all__ = [
    "formats",
    "relay",
    "state",
    "table_tennis",
]
