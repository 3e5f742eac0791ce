"""Monitors commitment pools for rollup delays, sends alerts and triggers rollups."""

__version__ = "0.1.0"