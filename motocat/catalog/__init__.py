"""Component catalog (engines, brake systems, frames, suspensions, wheels)."""

from motocat.catalog.repository import ComponentCatalog

__all__ = ["ComponentCatalog"]
