"""Heuristic PDF to XML structure conversion service."""

__version__ = "0.1.0"
