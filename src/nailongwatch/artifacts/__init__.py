"""Temporary annotated-image files and their cleanup."""
