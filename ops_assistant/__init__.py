"""IT operations assistant: query understanding, hybrid retrieval and caching."""

__version__ = "0.1.0"
