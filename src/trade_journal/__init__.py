"""Trade Journal import engine: broker execution logs to consolidated trades."""

__version__ = "1.0.0"
