"""Simulated payment intents and price quotes."""
