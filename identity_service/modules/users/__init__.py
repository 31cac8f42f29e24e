"""User accounts: registration, authentication, profiles and password flows."""
