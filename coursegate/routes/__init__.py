"""HTTP routes for the accounts service."""

from .api import blueprint

__all__ = ['blueprint']
