"""Rebuild a local NDJSON archive from released compressed chunks."""

__version__ = "0.1.0"
