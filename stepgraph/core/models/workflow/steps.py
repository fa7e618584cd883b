"""Step variants of a workflow graph."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .conditions import Condition
from .enums import TERMINAL_STEP_NAME, StepKind


class _StepBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    name: str

    @property
    def kind(self) -> StepKind:
        return StepKind(self.type)


class _QueuedStepBase(_StepBase):
    queue_name: str = ''
    """
    - Queue the step is dispatched to
    """
    starts_when: Condition | None = None
    """
    - Condition gating when the step becomes eligible to run
    - None only for partially built documents; the validator rejects it
    """
    delay_by_seconds: int = 0
    """
    - Delay before dispatch, carried opaquely for the execution engine
    """


class SimpleStep(_QueuedStepBase):
    """Ordinary single task."""

    type: Literal['simple'] = 'simple'


class FanOutStep(_QueuedStepBase):
    """Task producing zero or more child task instances."""

    type: Literal['fan_out'] = 'fan_out'


class ChoiceStep(_QueuedStepBase):
    """Task that resolves to exactly one of `options`."""

    type: Literal['choice'] = 'choice'
    options: tuple[str, ...] = ()


class ParallelStep(_StepBase):
    """
    The children of a FanOut step, joined back into the graph.

    Not gated by a condition: it follows the FanOut step named by
    `fan_out_from`.
    """

    type: Literal['parallel'] = 'parallel'
    queue_name: str = ''
    fan_out_from: str = ''
    start_only_when_all_subtasks_created: bool = False
    """
    - If True, children are dispatched only after the FanOut step
      finished creating all of them
    """
    delay_by_seconds: int = 0


class ExternalStep(_StepBase):
    """Step completed by an external caller; has no queue."""

    type: Literal['external'] = 'external'
    starts_when: Condition | None = None


class TerminalStep(_StepBase):
    """Marks successful completion of the workflow."""

    type: Literal['terminal'] = 'terminal'
    name: Literal['terminal'] = TERMINAL_STEP_NAME
    starts_when: Condition | None = None


Step = Annotated[
    Union[
        SimpleStep,
        FanOutStep,
        ChoiceStep,
        ParallelStep,
        ExternalStep,
        TerminalStep,
    ],
    Field(discriminator='type'),
]
"""
Discriminated union of all step variants (tag: `type`).
"""

ConditionalStep = SimpleStep | FanOutStep | ChoiceStep | ExternalStep | TerminalStep
DispatchableStep = SimpleStep | FanOutStep | ChoiceStep | ParallelStep
