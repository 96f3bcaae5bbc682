"""Backup and restore engine for the artsite portfolio backend."""

__version__ = "0.3.0"
__author__ = "artsite"
__url__ = "https://github.com/artsite/artsite-backend"
