"""Business rules for user accounts."""
