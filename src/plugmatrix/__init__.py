"""plugmatrix - generate and publish package-manager test plugins."""

__version__ = "0.1.0"
