"""Storage adapters for the users module."""
