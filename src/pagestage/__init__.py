"""Pagestage - multi-tenant page rendering from JSON element trees."""

__version__ = "0.1.0"
