"""Client for the threaded discussion attached to a published book."""

__version__ = "0.1.0"
