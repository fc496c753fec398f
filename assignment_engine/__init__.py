"""Motor de regras de atribuição: decide qual agente recebe cada registro novo."""

__version__ = "0.1.0"
