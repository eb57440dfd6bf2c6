"""TVDom - movie/TV social cataloguing service and client state core."""

__version__ = "1.0.0"
