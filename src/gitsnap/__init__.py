"""gitsnap: serialize a GitHub repository into a single text file."""

__version__ = "0.1.0"
