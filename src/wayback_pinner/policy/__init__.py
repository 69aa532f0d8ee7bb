"""Archiving policies."""
