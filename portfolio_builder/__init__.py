"""Portfolio builder data layer: MongoDB models and repositories."""

__version__ = "0.1.0"
