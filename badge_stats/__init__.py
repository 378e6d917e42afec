"""Generate SVG profile badges from GitHub and npm statistics."""

__version__ = "1.0.0"
