"""Infrastructure adapters shared by every module."""
