"""Core components: configuration, errors, logging and storage."""
