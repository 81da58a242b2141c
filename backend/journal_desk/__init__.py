"""journal-desk: compose, balance and submit double-entry journal entries."""

__version__ = "1.0.0"
