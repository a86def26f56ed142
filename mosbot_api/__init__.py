"""Mosbot API service."""
