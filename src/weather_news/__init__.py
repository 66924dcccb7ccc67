"""Weather-aware news feed."""

__version__ = "0.1.0"
