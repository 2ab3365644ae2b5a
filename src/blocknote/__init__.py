"""blocknote: an outline of typed blocks with offline-tolerant remote sync."""

__version__ = "0.1.0"
