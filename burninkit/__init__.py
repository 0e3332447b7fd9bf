"""Drive burn-in kit."""

__version__ = '1.0.0'
