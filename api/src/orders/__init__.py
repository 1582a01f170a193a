"""Orders created by checkout."""
