"""Stepgate — locked, halt-aware release deployment driven by a step workflow."""

from __future__ import annotations

__version__ = "0.1.0"
