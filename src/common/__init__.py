"""Shared helpers used across the resolver and the CLI."""
