"""Bundled curriculum content."""
