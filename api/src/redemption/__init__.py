"""Redemption of single-use kit codes."""
