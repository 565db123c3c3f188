"""Discord chat integration."""
