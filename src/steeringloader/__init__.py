"""Browse and load markdown steering templates from GitHub repositories."""

from __future__ import annotations

__version__ = "0.3.0"
