"""Application-level HTTP components: middleware and health endpoint."""
