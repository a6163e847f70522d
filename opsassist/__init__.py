"""Chat-oriented operations assistant backed by a text-only model CLI."""

__version__ = "0.1.0"
