"""Shared helpers: exact decimal conversion and timestamp normalisation."""
