"""Subagent aggregation services."""
