"""Presentation-facing services built on the tagging pipeline."""
