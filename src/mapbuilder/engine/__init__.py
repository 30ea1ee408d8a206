"""Engine module for layout editing.

This module provides the editing session, the interaction state machine,
persistence contract and the scripted operation API.
"""

from .api import apply, apply_operations
from .interaction import InteractionStateMachine, Tool
from .persistence import InMemoryStore, Persistence
from .session import HitTarget, LayoutSession, RenderSnapshot
from .validators import CommitError, GeometryWarning, InvalidOperation, PersistenceError

__all__ = [
    "CommitError",
    "GeometryWarning",
    "HitTarget",
    "InMemoryStore",
    "InteractionStateMachine",
    "InvalidOperation",
    "LayoutSession",
    "Persistence",
    "PersistenceError",
    "RenderSnapshot",
    "Tool",
    "apply",
    "apply_operations",
]
