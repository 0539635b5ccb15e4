"""Content-addressed texture storage with a chain of fallback retrieval sources."""

__version__ = "0.1.0"
