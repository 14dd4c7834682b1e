"""HTTP API for the retail operations backend."""

__version__ = "1.0.0"
