"""Lucid IR: conversation intermediate representation and streaming adapters."""

__version__ = "0.1.0"
