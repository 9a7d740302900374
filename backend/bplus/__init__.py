"""bplus metasearch-and-summarize backend."""

__version__ = "1.0.0"
