"""featureprune - find and prune unused Cargo dependency features."""

__version__ = "0.3.0"
