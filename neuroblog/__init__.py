"""NeuroBlog AI suggestion pipeline."""

__version__ = "1.0.0"
