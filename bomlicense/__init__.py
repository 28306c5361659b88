"""SPDX license list download, catalog and license file classification."""

__version__ = "0.1.0"