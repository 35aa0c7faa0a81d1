"""Shared helpers (env flags, logging setup)."""
