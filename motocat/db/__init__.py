"""Database layer for Motocat with async SQLAlchemy."""

from motocat.db.connection import get_session, get_session_factory, init_db
from motocat.db.models import (
    COMPONENT_TABLES,
    Base,
    BrakeSystemRow,
    ConfigurationRow,
    EngineRow,
    FrameRow,
    ModelComponentAssignmentRow,
    ModelYearRow,
    MotorcycleModelRow,
    SuspensionRow,
    WheelRow,
)

__all__ = [
    "Base",
    "COMPONENT_TABLES",
    "MotorcycleModelRow",
    "ModelYearRow",
    "ConfigurationRow",
    "ModelComponentAssignmentRow",
    "EngineRow",
    "BrakeSystemRow",
    "FrameRow",
    "SuspensionRow",
    "WheelRow",
    "get_session",
    "get_session_factory",
    "init_db",
]
