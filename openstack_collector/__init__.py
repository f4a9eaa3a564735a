"""Summary metrics collector for OpenStack clouds."""

__version__ = "0.1.0"
