"""Shared utilities: logging setup and correlation-id tracing."""
