"""Device approval workflow engine."""

__version__ = "1.0.0"
