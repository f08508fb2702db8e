"""Calendar Mirror - one-way calendar reconciliation."""

__version__ = "0.1.0"
