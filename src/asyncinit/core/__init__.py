"""Core primitives: errors, composite errors, logging, settings."""
