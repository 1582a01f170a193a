"""Official and community courses."""
