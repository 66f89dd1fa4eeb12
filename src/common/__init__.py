"""Shared helpers: logging."""
