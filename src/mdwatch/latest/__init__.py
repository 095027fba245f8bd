"""Incremental discovery of newly published MangaDex chapters."""
