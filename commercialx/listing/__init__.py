"""Listing wizard state: form table, step guard, submission schema."""
