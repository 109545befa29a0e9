"""Schema tools: generate schema source modules from migrations."""

__version__ = "0.1.0"
