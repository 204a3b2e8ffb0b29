"""govgate: governance gate and hash-chained audit ledger."""

__version__ = "0.1.0"
