"""Reactlyve core - quota-gated content and reaction lifecycle."""

__version__ = "0.1.0"
