"""Application package for the university election platform."""

__version__ = "0.1.0"
