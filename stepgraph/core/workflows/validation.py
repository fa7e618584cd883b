"""Structural validation of Workflow documents.

Validation is fail-fast and runs in three phases, each abandoned on the
first error:

1. fields: names, lengths, charsets, counts, uniqueness
2. conditions: references, choice results, nested Initial conditions
3. graph: terminal/initial steps, cycles, terminal reachability

Every error is a WorkflowValidationError whose `field_path` points at the
offending value, e.g. `Workflow.Steps[3].Choice.StartsWhen.Chosen.Result`.
"""

from __future__ import annotations

from typing import assert_never

from stepgraph.core.errors import (
    ErrorCode,
    WorkflowValidationError,
    workflow_validation_error,
)
from stepgraph.core.logging import get_logger
from stepgraph.core.models.limits import DEFAULT_LIMITS, WorkflowLimits
from stepgraph.core.models.workflow import (
    AllCondition,
    AnyCondition,
    ChoiceStep,
    ChosenCondition,
    Condition,
    ExternalStep,
    FailedCondition,
    FanOutStep,
    InitialCondition,
    ParallelStep,
    SimpleStep,
    Step,
    SucceededCondition,
    TerminalStep,
    Workflow,
)

from .graph import validate_graph

logger = get_logger('validator')


class WorkflowValidator:
    """
    Validates Workflow documents against a set of limits.

    Stateless apart from its limits, so one instance can validate any number
    of workflows, from any number of threads.
    """

    def __init__(self, limits: WorkflowLimits | None = None) -> None:
        self.limits = limits if limits is not None else DEFAULT_LIMITS
        self._name_re = self.limits.compiled_name_pattern()

    def validate(self, workflow: Workflow) -> None:
        """
        Validate `workflow`.

        Raises:
            WorkflowValidationError: For the first violated rule.
        """
        logger.debug(
            f"Validating workflow '{workflow.name}' ({len(workflow.steps)} steps)"
        )
        try:
            steps_by_name = self._validate_fields(workflow)
            self._validate_conditions(workflow, steps_by_name)
            validate_graph(workflow)
        except WorkflowValidationError as e:
            code = e.code.value if e.code else '-'
            logger.debug(
                f"Rejected workflow '{workflow.name}': [{code}] {e.field_path}: {e.message}"
            )
            raise
        logger.debug(f"Workflow '{workflow.name}' is valid")

    # =========================================================================
    # Phase 1: fields
    # =========================================================================

    def _validate_fields(self, workflow: Workflow) -> dict[str, Step]:
        limits = self.limits

        self._check_identifier(
            workflow.name,
            'Workflow.Name',
            what='workflow name',
            max_length=limits.max_workflow_name_length,
        )
        if len(workflow.description) > limits.max_description_length:
            raise _too_long(
                'workflow description',
                workflow.description,
                limits.max_description_length,
                'Workflow.Description',
            )

        if not workflow.steps:
            raise workflow_validation_error(
                'workflow steps are required',
                code=ErrorCode.WORKFLOW_REQUIRED_FIELD,
                field_path='Workflow.Steps',
            )
        if len(workflow.steps) > limits.max_steps:
            raise workflow_validation_error(
                f'workflow has too many steps (max {limits.max_steps})',
                code=ErrorCode.WORKFLOW_TOO_MANY_ITEMS,
                field_path='Workflow.Steps',
                notes=[f'workflow has {len(workflow.steps)} steps'],
            )

        self._validate_metadata(workflow)

        steps_by_name: dict[str, Step] = {}
        for i, step in enumerate(workflow.steps):
            path = f'Workflow.Steps[{i}]'
            self._check_identifier(
                step.name,
                f'{path}.Name',
                what='step name',
                max_length=limits.max_name_length,
            )
            existing = steps_by_name.get(step.name)
            if existing is None:
                steps_by_name[step.name] = step
            elif not (isinstance(existing, TerminalStep) and isinstance(step, TerminalStep)):
                # Repeated Terminal steps are reported by the graph phase.
                raise workflow_validation_error(
                    f"duplicate step name '{step.name}'",
                    code=ErrorCode.WORKFLOW_DUPLICATE_NAME,
                    field_path=f'{path}.Name',
                    help_text='each step must have a unique name within the workflow',
                )
            self._validate_step_payload(step, f'{path}.{step.kind.label}')

        return steps_by_name

    def _validate_metadata(self, workflow: Workflow) -> None:
        limits = self.limits
        if len(workflow.metadata) > limits.max_metadata_entries:
            raise workflow_validation_error(
                f'workflow has too many metadata entries (max {limits.max_metadata_entries})',
                code=ErrorCode.WORKFLOW_TOO_MANY_ITEMS,
                field_path='Workflow.Metadata',
                notes=[f'workflow has {len(workflow.metadata)} metadata entries'],
            )

        seen_keys: set[str] = set()
        for i, entry in enumerate(workflow.metadata):
            path = f'Workflow.Metadata[{i}]'
            self._check_identifier(
                entry.key,
                f'{path}.Key',
                what='metadata key',
                max_length=limits.max_metadata_key_length,
            )
            if entry.key in seen_keys:
                raise workflow_validation_error(
                    f"duplicate metadata key '{entry.key}'",
                    code=ErrorCode.WORKFLOW_DUPLICATE_METADATA_KEY,
                    field_path=f'{path}.Key',
                )
            seen_keys.add(entry.key)
            if len(entry.value) > limits.max_metadata_value_length:
                raise _too_long(
                    'metadata value',
                    entry.value,
                    limits.max_metadata_value_length,
                    f'{path}.Value',
                )

    def _validate_step_payload(self, step: Step, path: str) -> None:
        if isinstance(step, (SimpleStep, FanOutStep, ChoiceStep, ParallelStep)):
            self._check_identifier(
                step.queue_name,
                f'{path}.QueueName',
                what='queue name',
                max_length=self.limits.max_name_length,
            )
            if step.delay_by_seconds < 0:
                raise workflow_validation_error(
                    'step delay must not be negative',
                    code=ErrorCode.WORKFLOW_INVALID_DELAY,
                    field_path=f'{path}.DelayBySeconds',
                    notes=[f'delay_by_seconds={step.delay_by_seconds}'],
                )

        if isinstance(step, ChoiceStep):
            self._validate_options(step, path)
        elif isinstance(step, ParallelStep):
            if not step.fan_out_from:
                raise workflow_validation_error(
                    'parallel step fan_out_from is required',
                    code=ErrorCode.WORKFLOW_REQUIRED_FIELD,
                    field_path=f'{path}.FanOutFrom',
                    help_text='attach the step to a fan-out step with fan_out_from(...)',
                )
        elif isinstance(step, (SimpleStep, FanOutStep, ExternalStep, TerminalStep)):
            pass
        else:
            assert_never(step)

    def _validate_options(self, step: ChoiceStep, path: str) -> None:
        if not step.options:
            raise workflow_validation_error(
                'choice step options are required',
                code=ErrorCode.WORKFLOW_REQUIRED_FIELD,
                field_path=f'{path}.Options',
                help_text="declare the possible results with with_options('a', 'b')",
            )
        seen: set[str] = set()
        for j, option in enumerate(step.options):
            option_path = f'{path}.Options[{j}]'
            self._check_identifier(
                option,
                option_path,
                what='choice option',
                max_length=self.limits.max_option_length,
            )
            if option in seen:
                raise workflow_validation_error(
                    f"duplicate choice option '{option}'",
                    code=ErrorCode.WORKFLOW_DUPLICATE_OPTION,
                    field_path=option_path,
                )
            seen.add(option)

    # =========================================================================
    # Phase 2: conditions
    # =========================================================================

    def _validate_conditions(
        self, workflow: Workflow, steps_by_name: dict[str, Step]
    ) -> None:
        for i, step in enumerate(workflow.steps):
            path = f'Workflow.Steps[{i}].{step.kind.label}'
            if isinstance(step, ParallelStep):
                self._validate_fan_out_from(step, path, steps_by_name)
                continue
            if step.starts_when is None:
                raise workflow_validation_error(
                    f"step '{step.name}' has no start condition",
                    code=ErrorCode.WORKFLOW_REQUIRED_FIELD,
                    field_path=f'{path}.StartsWhen',
                    help_text='use start_when(...) or is_initial()',
                )
            self._validate_condition(
                step.starts_when, f'{path}.StartsWhen', steps_by_name, depth=1
            )

    def _validate_condition(
        self,
        condition: Condition,
        path: str,
        steps_by_name: dict[str, Step],
        *,
        depth: int,
    ) -> None:
        path = f'{path}.{condition.kind.label}'
        if depth > self.limits.max_condition_depth:
            raise workflow_validation_error(
                'condition is nested too deeply',
                code=ErrorCode.WORKFLOW_CONDITION_TOO_DEEP,
                field_path=path,
                notes=[f'maximum nesting depth is {self.limits.max_condition_depth}'],
            )

        if isinstance(condition, InitialCondition):
            # Only reachable at the top level; groups reject nested ones first.
            return

        if isinstance(condition, (SucceededCondition, FailedCondition)):
            self._resolve_reference(condition.step_name, f'{path}.StepName', steps_by_name)
        elif isinstance(condition, ChosenCondition):
            self._validate_chosen(condition, path, steps_by_name)
        elif isinstance(condition, (AllCondition, AnyCondition)):
            nested = self._find_nested_initial(
                condition.conditions, f'{path}.Conditions', depth=depth + 1
            )
            if nested is not None:
                raise workflow_validation_error(
                    'initial condition cannot be inside an All or Any condition',
                    code=ErrorCode.WORKFLOW_NESTED_INITIAL,
                    field_path=nested,
                    help_text='use is_initial() only as a step\'s own start condition',
                )
            if not condition.conditions:
                raise workflow_validation_error(
                    f'{condition.kind.label} condition must contain at least one condition',
                    code=ErrorCode.WORKFLOW_EMPTY_CONDITION_GROUP,
                    field_path=f'{path}.Conditions',
                )
            for k, child in enumerate(condition.conditions):
                self._validate_condition(
                    child,
                    f'{path}.Conditions[{k}]',
                    steps_by_name,
                    depth=depth + 1,
                )
        else:
            assert_never(condition)

    def _find_nested_initial(
        self, conditions: tuple[Condition, ...], path: str, *, depth: int
    ) -> str | None:
        """Return the field path of the first Initial in `conditions`, if any.

        Stops descending past the depth limit; _validate_condition reports
        overly deep trees itself.
        """
        if depth > self.limits.max_condition_depth:
            return None
        for k, child in enumerate(conditions):
            child_path = f'{path}[{k}].{child.kind.label}'
            if isinstance(child, InitialCondition):
                return child_path
            if isinstance(child, (AllCondition, AnyCondition)):
                found = self._find_nested_initial(
                    child.conditions, f'{child_path}.Conditions', depth=depth + 1
                )
                if found is not None:
                    return found
        return None

    def _validate_chosen(
        self,
        condition: ChosenCondition,
        path: str,
        steps_by_name: dict[str, Step],
    ) -> None:
        target = self._resolve_reference(
            condition.step_name, f'{path}.StepName', steps_by_name
        )
        if not isinstance(target, ChoiceStep):
            raise workflow_validation_error(
                f"chosen condition references step '{target.name}' which is not a choice step",
                code=ErrorCode.WORKFLOW_WRONG_STEP_KIND,
                field_path=f'{path}.StepName',
                notes=[f"'{target.name}' is a {target.kind.label} step"],
            )

        result_path = f'{path}.Result'
        self._check_identifier(
            condition.result,
            result_path,
            what='chosen result',
            max_length=self.limits.max_option_length,
        )
        if condition.result not in target.options:
            raise workflow_validation_error(
                f"'{condition.result}' is not an option of choice step '{target.name}'",
                code=ErrorCode.WORKFLOW_INVALID_CHOICE_RESULT,
                field_path=result_path,
                notes=[f'options: {list(target.options)}'],
            )

    def _validate_fan_out_from(
        self,
        step: ParallelStep,
        path: str,
        steps_by_name: dict[str, Step],
    ) -> None:
        field_path = f'{path}.FanOutFrom'
        self._check_identifier(
            step.fan_out_from,
            field_path,
            what='fan_out_from step name',
            max_length=self.limits.max_name_length,
        )
        source = steps_by_name.get(step.fan_out_from)
        if source is None:
            raise workflow_validation_error(
                f"parallel step fans out from unknown step '{step.fan_out_from}'",
                code=ErrorCode.WORKFLOW_UNKNOWN_STEP,
                field_path=field_path,
            )
        if not isinstance(source, FanOutStep):
            raise workflow_validation_error(
                f"parallel step fans out from '{source.name}' which is not a fan-out step",
                code=ErrorCode.WORKFLOW_WRONG_STEP_KIND,
                field_path=field_path,
                notes=[f"'{source.name}' is a {source.kind.label} step"],
            )

    def _resolve_reference(
        self, name: str, path: str, steps_by_name: dict[str, Step]
    ) -> Step:
        self._check_identifier(
            name, path, what='step name', max_length=self.limits.max_name_length
        )
        target = steps_by_name.get(name)
        if target is None:
            raise workflow_validation_error(
                f"condition references unknown step '{name}'",
                code=ErrorCode.WORKFLOW_UNKNOWN_STEP,
                field_path=path,
                help_text='conditions may only reference steps declared in the same workflow',
            )
        if isinstance(target, TerminalStep):
            raise workflow_validation_error(
                'condition cannot reference the terminal step',
                code=ErrorCode.WORKFLOW_WRONG_STEP_KIND,
                field_path=path,
            )
        return target

    # =========================================================================
    # Helpers
    # =========================================================================

    def _check_identifier(
        self, value: str, path: str, *, what: str, max_length: int
    ) -> None:
        if not value:
            raise workflow_validation_error(
                f'{what} is required',
                code=ErrorCode.WORKFLOW_REQUIRED_FIELD,
                field_path=path,
            )
        if len(value) > max_length:
            raise _too_long(what, value, max_length, path)
        if self._name_re.fullmatch(value) is None:
            raise workflow_validation_error(
                f'{what} contains invalid characters',
                code=ErrorCode.WORKFLOW_INVALID_CHARSET,
                field_path=path,
                notes=[f'{what} {value!r}'],
                help_text=f'{what} must match pattern: {self.limits.name_pattern}',
            )


def _too_long(what: str, value: str, max_length: int, path: str) -> WorkflowValidationError:
    return workflow_validation_error(
        f'{what} exceeds {max_length} characters',
        code=ErrorCode.WORKFLOW_FIELD_TOO_LONG,
        field_path=path,
        notes=[f'{what} has {len(value)} characters'],
    )


def validate_workflow(workflow: Workflow, *, limits: WorkflowLimits | None = None) -> None:
    """
    Validate a workflow document.

    Pure and deterministic: the same document always yields the same
    outcome and the same error field path.

    Raises:
        WorkflowValidationError: For the first violated rule.
    """
    WorkflowValidator(limits).validate(workflow)
