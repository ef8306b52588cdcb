"""Retrieval, grounding and provider services."""
