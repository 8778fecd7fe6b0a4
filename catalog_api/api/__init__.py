"""API layer for the catalog service."""
