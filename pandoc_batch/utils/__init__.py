"""Shared utilities: logging, error handling, MIME detection and workspaces."""
