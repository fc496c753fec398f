"""API HTTP do motor de atribuição."""
