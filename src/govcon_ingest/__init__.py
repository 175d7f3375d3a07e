"""Ingestion and reconciliation of federal contracting opportunities and awards."""

__version__ = "0.1.0"
