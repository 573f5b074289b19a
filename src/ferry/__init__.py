"""Batch file uploads to pluggable storage backends."""

__version__ = "0.1.0"
