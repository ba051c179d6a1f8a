"""relay - chat message relay driven through Android UI automation."""

__version__ = "0.1.0"
