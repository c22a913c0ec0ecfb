"""Delve combat backend."""
