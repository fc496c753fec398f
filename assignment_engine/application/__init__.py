"""Camada de aplicação: casos de uso do motor."""
