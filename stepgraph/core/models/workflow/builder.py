"""Fluent workflow construction."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import timedelta
from typing import ClassVar, Self, TypeVar

from stepgraph.core.logging import get_logger

from .conditions import (
    AllCondition,
    AnyCondition,
    ChosenCondition,
    Condition,
    FailedCondition,
    InitialCondition,
    SucceededCondition,
)
from .document import MetadataEntry, Workflow
from .enums import TERMINAL_STEP_NAME, StepKind
from .steps import (
    ChoiceStep,
    ExternalStep,
    FanOutStep,
    ParallelStep,
    SimpleStep,
    Step,
    TerminalStep,
)

logger = get_logger('builder')


# =============================================================================
# Step builders
# =============================================================================


class StepBuilder(ABC):
    """
    Handle to a step declared on a WorkflowBuilder.

    Handles are what condition factories accept, so a condition can only name
    a step that was declared through the builder. Configuration is read when
    WorkflowBuilder.build() freezes the handle into an immutable Step.
    """

    kind: ClassVar[StepKind]

    def __init__(self, name: str) -> None:
        self._name = name
        self._queue_name = ''
        self._starts_when: Condition | None = None
        self._delay_by_seconds = 0

    @property
    def name(self) -> str:
        return self._name

    @abstractmethod
    def _build(self) -> Step: ...

    def __repr__(self) -> str:
        return f'{type(self).__name__}(name={self._name!r})'


_B = TypeVar('_B', bound=StepBuilder)


class _QueueMixin(StepBuilder):
    def queue_to(self, queue_name: str) -> Self:
        """Dispatch this step to `queue_name`."""
        self._queue_name = queue_name
        return self

    def delay_by(self, delay: timedelta | int) -> Self:
        """Delay dispatch by `delay` (timedelta, or whole seconds).

        Sub-second parts of a timedelta are dropped.
        """
        if isinstance(delay, timedelta):
            self._delay_by_seconds = int(delay.total_seconds())
        else:
            self._delay_by_seconds = int(delay)
        return self


class _ConditionMixin(StepBuilder):
    def start_when(self, condition: Condition) -> Self:
        """Gate this step on `condition` (replaces any earlier condition)."""
        self._starts_when = condition
        return self

    def is_initial(self) -> Self:
        """Mark this step as an entry point (replaces any earlier condition)."""
        self._starts_when = InitialCondition()
        return self


class SimpleStepBuilder(_QueueMixin, _ConditionMixin):
    kind = StepKind.SIMPLE

    def _build(self) -> SimpleStep:
        return SimpleStep(
            name=self._name,
            queue_name=self._queue_name,
            starts_when=self._starts_when,
            delay_by_seconds=self._delay_by_seconds,
        )


class FanOutStepBuilder(_QueueMixin, _ConditionMixin):
    kind = StepKind.FAN_OUT

    def _build(self) -> FanOutStep:
        return FanOutStep(
            name=self._name,
            queue_name=self._queue_name,
            starts_when=self._starts_when,
            delay_by_seconds=self._delay_by_seconds,
        )


class ChoiceStepBuilder(_QueueMixin, _ConditionMixin):
    kind = StepKind.CHOICE

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self._options: tuple[str, ...] = ()

    def with_options(self, *options: str) -> Self:
        """Set the labels this step can resolve to (replaces earlier options)."""
        self._options = tuple(options)
        return self

    def _build(self) -> ChoiceStep:
        return ChoiceStep(
            name=self._name,
            queue_name=self._queue_name,
            starts_when=self._starts_when,
            delay_by_seconds=self._delay_by_seconds,
            options=self._options,
        )


class ParallelStepBuilder(_QueueMixin):
    kind = StepKind.PARALLEL

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self._fan_out_from: FanOutStepBuilder | None = None
        self._start_only_when_all_subtasks_created = False

    def fan_out_from(self, step: FanOutStepBuilder) -> Self:
        """Run as the children of the FanOut step `step`."""
        self._fan_out_from = step
        return self

    def start_only_when_all_subtasks_created(self) -> Self:
        self._start_only_when_all_subtasks_created = True
        return self

    def _build(self) -> ParallelStep:
        return ParallelStep(
            name=self._name,
            queue_name=self._queue_name,
            fan_out_from=self._fan_out_from.name if self._fan_out_from else '',
            start_only_when_all_subtasks_created=self._start_only_when_all_subtasks_created,
            delay_by_seconds=self._delay_by_seconds,
        )


class ExternalStepBuilder(_ConditionMixin):
    kind = StepKind.EXTERNAL

    def _build(self) -> ExternalStep:
        return ExternalStep(name=self._name, starts_when=self._starts_when)


class TerminalStepBuilder(_ConditionMixin):
    kind = StepKind.TERMINAL

    def __init__(self) -> None:
        super().__init__(TERMINAL_STEP_NAME)

    def _build(self) -> TerminalStep:
        return TerminalStep(starts_when=self._starts_when)


# =============================================================================
# WorkflowBuilder
# =============================================================================


class WorkflowBuilder:
    """
    Accumulates steps and metadata, then freezes them into a Workflow.

    Building never validates: a partially wired workflow can be built for
    display or diffing. Run validate_workflow() on the result before
    handing it to an engine.

    Example:
        b = WorkflowBuilder('orders', 'Process an order')
        charge = b.simple_step('charge').is_initial().queue_to('payments')
        review = (
            b.choice_step('review')
            .start_when(b.succeeded(charge))
            .with_options('approve', 'reject')
            .queue_to('manual')
        )
        ship = b.simple_step('ship').start_when(b.chosen(review, 'approve')).queue_to('io')
        b.terminal_step().start_when(b.any(b.succeeded(ship), b.chosen(review, 'reject')))
        workflow = b.build()

    A builder belongs to one caller at a time; the built Workflow is
    immutable and can be shared freely.
    """

    def __init__(self, name: str, description: str = '') -> None:
        self._name = name
        self._description = description
        self._steps: list[StepBuilder] = []
        self._metadata: list[MetadataEntry] = []

    def metadata(self, meta: Mapping[str, str]) -> Self:
        """Append metadata entries. Keys repeated across calls are kept as is."""
        for key, value in meta.items():
            self._metadata.append(MetadataEntry(key=key, value=value))
        return self

    # -------------------------------------------------------------------------
    # Condition factories
    # -------------------------------------------------------------------------

    def succeeded(self, step: StepBuilder) -> SucceededCondition:
        return SucceededCondition(step_name=step.name)

    def failed(self, step: StepBuilder) -> FailedCondition:
        return FailedCondition(step_name=step.name)

    def chosen(self, step: ChoiceStepBuilder, result: str) -> ChosenCondition:
        return ChosenCondition(step_name=step.name, result=result)

    def all(self, *conditions: Condition) -> AllCondition:
        return AllCondition(conditions=conditions)

    def any(self, *conditions: Condition) -> AnyCondition:
        return AnyCondition(conditions=conditions)

    # -------------------------------------------------------------------------
    # Step factories (declaration order is the document's step order)
    # -------------------------------------------------------------------------

    def simple_step(self, name: str) -> SimpleStepBuilder:
        return self._add(SimpleStepBuilder(name))

    def fan_out_step(self, name: str) -> FanOutStepBuilder:
        return self._add(FanOutStepBuilder(name))

    def choice_step(self, name: str) -> ChoiceStepBuilder:
        return self._add(ChoiceStepBuilder(name))

    def parallel_step(self, name: str) -> ParallelStepBuilder:
        return self._add(ParallelStepBuilder(name))

    def external_step(self, name: str) -> ExternalStepBuilder:
        return self._add(ExternalStepBuilder(name))

    def terminal_step(self) -> TerminalStepBuilder:
        return self._add(TerminalStepBuilder())

    def _add(self, step: _B) -> _B:
        self._steps.append(step)
        return step

    # -------------------------------------------------------------------------
    # Freezing
    # -------------------------------------------------------------------------

    def build(self) -> Workflow:
        """Freeze all declared steps, in declaration order, into a Workflow."""
        workflow = Workflow(
            name=self._name,
            description=self._description,
            steps=tuple(step._build() for step in self._steps),
            metadata=tuple(self._metadata),
        )
        logger.debug(f"Built workflow '{self._name}' with {len(workflow.steps)} steps")
        return workflow

    def must_build(self) -> Workflow:
        """Like build(), raising on any construction error.

        Construction has no failure modes today, so this always returns.
        """
        return self.build()
