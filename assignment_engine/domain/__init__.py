"""Domínio do motor de atribuição."""
