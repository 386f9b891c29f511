"""qpick: interactive terminal picker backed by an external search command."""

__version__ = "0.1.0"
