"""CLA verification bot for GitHub pull requests."""

__version__ = "1.0.0"
