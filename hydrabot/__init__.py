"""hydrabot: water-intake intent parsing for a single-user hydration chat bot."""
