"""sedori - product compliance checks for resale listings."""

__version__ = "0.1.0"

__all__ = ["__version__"]
