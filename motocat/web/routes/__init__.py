"""Motocat web route modules.

Each module exports a `router` object (APIRouter instance); the app factory
in motocat.web.app includes them.
"""

from motocat.web.routes import assignments, components

__all__ = ["assignments", "components"]
