"""Shared utilities for mosbot services."""
