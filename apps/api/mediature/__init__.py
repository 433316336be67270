"""Médiature API."""
