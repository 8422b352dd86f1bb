"""Command-line interface for brewcoffee."""

from __future__ import annotations
