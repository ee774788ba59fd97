"""Shared error, logging and settings helpers."""
