"""Utility helpers shared across sqlchain."""
