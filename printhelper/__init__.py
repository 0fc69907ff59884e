"""printhelper - template rendering and PDF synthesis service."""

__version__ = "0.1.0"
