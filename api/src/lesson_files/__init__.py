"""Lesson file assets: upload, compile, preview."""
