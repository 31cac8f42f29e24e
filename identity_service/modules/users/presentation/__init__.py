"""HTTP surface of the users module."""
