"""Annotated-screenshot manual editing SDK."""
