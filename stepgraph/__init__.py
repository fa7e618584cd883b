"""stepgraph - build and statically validate workflow step graphs"""

# Install Rust-style error handler on import
from .core.errors import install_error_handler as _install_error_handler

_install_error_handler()

from .core.errors import (
    ErrorCode,
    StepgraphError,
    WorkflowValidationError,
    ConfigurationError,
)
from .core.models.limits import WorkflowLimits, DEFAULT_LIMITS
from .core.models.workflow import (
    TERMINAL_STEP_NAME,
    StepKind,
    ConditionKind,
    Condition,
    InitialCondition,
    SucceededCondition,
    FailedCondition,
    ChosenCondition,
    AllCondition,
    AnyCondition,
    Step,
    SimpleStep,
    FanOutStep,
    ChoiceStep,
    ParallelStep,
    ExternalStep,
    TerminalStep,
    MetadataEntry,
    Workflow,
    WorkflowBuilder,
)
from .core.workflows import (
    WorkflowValidator,
    validate_workflow,
    register_workflow,
    unregister_workflow,
    get_workflow,
    is_workflow_registered,
)
from .core.codec.serde import (
    SerializationError,
    dumps_workflow,
    loads_workflow,
    workflow_to_json,
    workflow_from_json,
)

__all__ = [
    # Errors
    'ErrorCode',
    'StepgraphError',
    'WorkflowValidationError',
    'ConfigurationError',
    # Config
    'WorkflowLimits',
    'DEFAULT_LIMITS',
    # Document
    'TERMINAL_STEP_NAME',
    'StepKind',
    'ConditionKind',
    'Condition',
    'InitialCondition',
    'SucceededCondition',
    'FailedCondition',
    'ChosenCondition',
    'AllCondition',
    'AnyCondition',
    'Step',
    'SimpleStep',
    'FanOutStep',
    'ChoiceStep',
    'ParallelStep',
    'ExternalStep',
    'TerminalStep',
    'MetadataEntry',
    'Workflow',
    # Builder
    'WorkflowBuilder',
    # Validation
    'WorkflowValidator',
    'validate_workflow',
    # Registry
    'register_workflow',
    'unregister_workflow',
    'get_workflow',
    'is_workflow_registered',
    # Serialization
    'SerializationError',
    'dumps_workflow',
    'loads_workflow',
    'workflow_to_json',
    'workflow_from_json',
]
