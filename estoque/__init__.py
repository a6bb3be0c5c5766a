"""Controle de Estoque: equipment inventory and movement tracking API."""

__version__ = "1.0.0"
