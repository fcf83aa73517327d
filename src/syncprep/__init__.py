"""Prepare a folder tree for upload to a cloud file-sync service."""

__version__ = "0.1.0"
