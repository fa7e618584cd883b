"""Registry of accepted Workflow documents.

A workflow is accepted only if it validates; an invalid document is
rejected whole and nothing of it is stored. Engines running in the same
process look workflows up by name.
"""

from __future__ import annotations

import threading

from stepgraph.core.logging import get_logger
from stepgraph.core.models.limits import WorkflowLimits
from stepgraph.core.models.workflow import Workflow

from .validation import validate_workflow

logger = get_logger('registry')

# Registry: workflow name -> accepted Workflow
_workflows: dict[str, Workflow] = {}
_lock = threading.Lock()


def register_workflow(
    workflow: Workflow, *, limits: WorkflowLimits | None = None
) -> None:
    """
    Validate and register a workflow, replacing any workflow of the same name.

    Raises:
        WorkflowValidationError: If the workflow is invalid; the registry is
            left unchanged.
    """
    validate_workflow(workflow, limits=limits)
    with _lock:
        replaced = workflow.name in _workflows
        _workflows[workflow.name] = workflow
    if replaced:
        logger.info(f"Replaced workflow '{workflow.name}' ({len(workflow.steps)} steps)")
    else:
        logger.info(f"Registered workflow '{workflow.name}' ({len(workflow.steps)} steps)")


def unregister_workflow(name: str) -> None:
    """Remove a workflow from the registry (no-op if absent)."""
    with _lock:
        removed = _workflows.pop(name, None)
    if removed is not None:
        logger.info(f"Unregistered workflow '{name}'")


def get_workflow(name: str) -> Workflow | None:
    """
    Look up an accepted workflow by name.

    Returns None if no workflow of that name is registered.
    """
    with _lock:
        return _workflows.get(name)


def is_workflow_registered(name: str) -> bool:
    """Check if a workflow is registered."""
    with _lock:
        return name in _workflows


def clear_workflow_registry() -> None:
    """Remove every registered workflow."""
    with _lock:
        _workflows.clear()
