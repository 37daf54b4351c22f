"""Filesystem-backed profile store service."""

__version__ = "1.0.0"
