"""Listing data-quality scoring."""
