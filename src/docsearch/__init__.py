"""docsearch: symbol search over generated documentation indexes."""

__version__ = "0.1.0"
