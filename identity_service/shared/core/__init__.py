"""Exceptions and security primitives shared by every module."""
