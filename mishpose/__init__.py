"""MISHPOSE: sheet music transposition for transposing instruments."""

__version__ = "0.1.0"
