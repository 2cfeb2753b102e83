"""Due-date classification and alert feed for habilitación tracking."""

__version__ = "0.3.0"
