"""HTTP API for deckrender."""
