"""Payload loading from local JSON files."""
