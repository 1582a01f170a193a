"""Course lessons and per-user lesson visibility."""
