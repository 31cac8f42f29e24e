"""Logging setup and request context helpers."""
