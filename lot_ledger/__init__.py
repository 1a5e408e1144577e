"""Cost-basis tax lot ledger for a single asset."""

__version__ = "0.1.0"
