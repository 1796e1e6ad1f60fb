"""Catalog data sources."""
