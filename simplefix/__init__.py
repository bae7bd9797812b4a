"""FIX message handlers and tools for reading FIX XML dictionaries."""

__version__ = "0.1.0"