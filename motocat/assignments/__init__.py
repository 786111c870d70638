"""Component assignment and inheritance resolution."""

from motocat.assignments.bulk import BulkAssignmentCoordinator
from motocat.assignments.resolution import ResolutionEngine, effective_component
from motocat.assignments.service import AssignmentService, build_service
from motocat.assignments.store import AssignmentStore
from motocat.assignments.usage import UsageAnalyzer

__all__ = [
    "AssignmentService",
    "AssignmentStore",
    "BulkAssignmentCoordinator",
    "ResolutionEngine",
    "UsageAnalyzer",
    "build_service",
    "effective_component",
]
