"""Review it! server: merge requests and out-of-band patch integration."""

__version__ = "0.9.0"
