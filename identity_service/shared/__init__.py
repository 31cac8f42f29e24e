"""Cross-module building blocks: configuration, core services, domain base types, persistence."""
