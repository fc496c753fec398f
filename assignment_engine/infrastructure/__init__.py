"""Infraestrutura: banco, logging e armazenamento do estado do motor."""
