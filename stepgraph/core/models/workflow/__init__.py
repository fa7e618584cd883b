"""Workflow document models and the fluent builder."""

# Re-export all public symbols so callers can use:
#   from stepgraph.core.models.workflow import Workflow, WorkflowBuilder, ...

from stepgraph.core.models.workflow.enums import (
    TERMINAL_STEP_NAME,
    DISPATCHABLE_STEP_KINDS,
    StepKind,
    ConditionKind,
)
from stepgraph.core.models.workflow.conditions import (
    Condition,
    InitialCondition,
    SucceededCondition,
    FailedCondition,
    ChosenCondition,
    AllCondition,
    AnyCondition,
    StepReferenceCondition,
    GroupCondition,
)
from stepgraph.core.models.workflow.steps import (
    Step,
    SimpleStep,
    FanOutStep,
    ChoiceStep,
    ParallelStep,
    ExternalStep,
    TerminalStep,
    ConditionalStep,
    DispatchableStep,
)
from stepgraph.core.models.workflow.document import MetadataEntry, Workflow
from stepgraph.core.models.workflow.builder import (
    StepBuilder,
    SimpleStepBuilder,
    FanOutStepBuilder,
    ChoiceStepBuilder,
    ParallelStepBuilder,
    ExternalStepBuilder,
    TerminalStepBuilder,
    WorkflowBuilder,
)

from stepgraph.core.errors import WorkflowValidationError

__all__ = [
    # enums
    'TERMINAL_STEP_NAME',
    'DISPATCHABLE_STEP_KINDS',
    'StepKind',
    'ConditionKind',
    # conditions
    'Condition',
    'InitialCondition',
    'SucceededCondition',
    'FailedCondition',
    'ChosenCondition',
    'AllCondition',
    'AnyCondition',
    'StepReferenceCondition',
    'GroupCondition',
    # steps
    'Step',
    'SimpleStep',
    'FanOutStep',
    'ChoiceStep',
    'ParallelStep',
    'ExternalStep',
    'TerminalStep',
    'ConditionalStep',
    'DispatchableStep',
    # document
    'MetadataEntry',
    'Workflow',
    # builder
    'StepBuilder',
    'SimpleStepBuilder',
    'FanOutStepBuilder',
    'ChoiceStepBuilder',
    'ParallelStepBuilder',
    'ExternalStepBuilder',
    'TerminalStepBuilder',
    'WorkflowBuilder',
    # errors
    'WorkflowValidationError',
]
