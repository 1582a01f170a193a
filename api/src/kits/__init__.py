"""Kit catalog and redemption codes."""
