"""Download serialized web novels into a single text file."""

__version__ = "0.1.0"
