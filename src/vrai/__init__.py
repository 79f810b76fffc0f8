"""Vrai — luxury-goods authentication service."""

__version__ = "1.0.0"
