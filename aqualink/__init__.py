"""AquaLink: water-delivery request and dispatch API."""

__version__ = "0.1.0"
