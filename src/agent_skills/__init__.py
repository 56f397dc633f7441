"""Discover, validate, install and export agent skills."""

__version__ = "0.1.0"
