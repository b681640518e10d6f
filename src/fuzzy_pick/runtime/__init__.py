"""Runtime module for finder process management.

This module provides the finder process session: spawning, streaming
items into its input, draining its output and reliable termination.
"""

from __future__ import annotations

from .session import ProcessSession

__all__ = [
    "ProcessSession",
]
