"""Guideline rules and the default profile."""
