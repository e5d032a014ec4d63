"""Bulk Unix account provisioning from a delimited input file."""

__version__ = "1.0.0"
