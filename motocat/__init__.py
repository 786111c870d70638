"""Motocat: motorcycle component assignment and inheritance resolution."""

__version__ = "0.1.0"
