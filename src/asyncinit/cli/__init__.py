"""Command-line interface: ``asyncinit``."""
