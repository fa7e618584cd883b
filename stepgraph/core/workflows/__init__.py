"""Workflow validation and registration."""

from stepgraph.core.workflows.graph import StepGraph, iter_referenced_step_names, validate_graph
from stepgraph.core.workflows.validation import WorkflowValidator, validate_workflow
from stepgraph.core.workflows.registry import (
    clear_workflow_registry,
    get_workflow,
    is_workflow_registered,
    register_workflow,
    unregister_workflow,
)

__all__ = [
    'StepGraph',
    'iter_referenced_step_names',
    'validate_graph',
    'WorkflowValidator',
    'validate_workflow',
    'register_workflow',
    'unregister_workflow',
    'get_workflow',
    'is_workflow_registered',
    'clear_workflow_registry',
]
