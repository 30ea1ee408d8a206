"""Core API for scripted layout operations.

Operations are plain dictionaries such as
``{"op": "move_room", "room": "hall", "dx": 32, "dy": 0}`` so they can be
read from JSON files or produced by other tools.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, List

from .ops import get_operation
from .session import LayoutSession
from .validators import InvalidOperation, PersistenceError

LOGGER = logging.getLogger(__name__)


def apply(session: LayoutSession, operation: dict) -> Any:
    """Apply one operation to a session.

    Args:
        session: The session to modify.
        operation: Dictionary describing the operation to apply.

    Returns:
        Whatever the operation returns (usually the affected entity).

    Raises:
        ValueError: If the operation type is missing or not recognized.
        InvalidOperation: If the operation violates layout invariants.
        CommitError: If persistence rejected the change.
    """
    operation_type = operation.get("op") or operation.get("type")

    if operation_type is None:
        raise ValueError("Operation must have an 'op' or 'type' field")

    try:
        op = get_operation(operation_type)
    except KeyError:
        raise ValueError(f"Unknown operation type: {operation_type}")

    params = {k: v for k, v in operation.items() if k not in ["op", "type"]}

    try:
        op.precheck(session, **params)
    except TypeError as e:
        raise InvalidOperation(f"Bad parameters for '{operation_type}': {e}") from e

    LOGGER.debug("Applying %s %s", operation_type, params)
    return op.apply(session, **params)


def _describe(result: Any) -> Any:
    if is_dataclass(result):
        return asdict(result)
    return result


def apply_operations(session: LayoutSession, operations: List[dict]) -> List[Dict[str, Any]]:
    """Apply operations in order, continuing past failures.

    Returns:
        One result dict per operation with ``operation_index``,
        ``operation``, ``success``, ``warnings`` and either ``result`` or
        ``error``.
    """
    results = []
    for i, operation in enumerate(operations):
        try:
            result = apply(session, operation)
        except (ValueError, InvalidOperation, PersistenceError) as e:
            LOGGER.warning("Operation %d (%s) failed: %s", i, operation.get("op"), e)
            results.append({
                "operation_index": i,
                "operation": operation,
                "success": False,
                "warnings": [asdict(w) for w in session.drain_warnings()],
                "error": str(e),
            })
            continue

        results.append({
            "operation_index": i,
            "operation": operation,
            "success": True,
            "warnings": [asdict(w) for w in session.drain_warnings()],
            "result": _describe(result),
        })
    return results
