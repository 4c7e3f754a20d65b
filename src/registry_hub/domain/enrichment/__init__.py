"""Enrichment of stored company records from external portals."""
