"""Kit entitlements and the purchase ledger."""
