from frolyk.assignment.context import (
    Assignment,
    AssignmentContext,
    CommittableAssignment,
    ContextState,
    Processor,
    ProcessorFactory,
    create_assignment_context,
)
from frolyk.assignment.offsets import parse_offset, validate_commit

__all__ = [
    "Assignment",
    "AssignmentContext",
    "CommittableAssignment",
    "ContextState",
    "Processor",
    "ProcessorFactory",
    "create_assignment_context",
    "parse_offset",
    "validate_commit",
]
