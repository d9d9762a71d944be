"""Session and authentication layer for request pipelines."""

__version__ = "1.0.0"
