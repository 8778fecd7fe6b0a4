"""Catalog API service package."""
