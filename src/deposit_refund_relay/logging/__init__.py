"""Logging setup (structlog over stdlib, optional Logfire export)."""
