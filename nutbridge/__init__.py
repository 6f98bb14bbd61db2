"""nutbridge - bridges a NUT UPS daemon into a hierarchical state store."""

__version__ = "0.1.0"
