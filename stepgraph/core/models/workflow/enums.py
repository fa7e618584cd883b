"""Step and condition kind enums."""

from __future__ import annotations

from enum import Enum

TERMINAL_STEP_NAME = 'terminal'
"""Fixed name carried by the single Terminal step of every workflow."""


# =============================================================================
# Enums
# =============================================================================


class StepKind(str, Enum):
    """
    Variant tag of a Step.

    The value is the `type` discriminator used on the wire;
    `label` is the name used in validation field paths.
    """

    SIMPLE = 'simple'
    """Ordinary single task"""

    FAN_OUT = 'fan_out'
    """Produces zero or more child task instances"""

    CHOICE = 'choice'
    """Resolves to exactly one label from its options"""

    PARALLEL = 'parallel'
    """Children of a FanOut step, joined back into the graph"""

    EXTERNAL = 'external'
    """Triggered externally; no queue"""

    TERMINAL = 'terminal'
    """Marks successful completion; exactly one per workflow"""

    @property
    def label(self) -> str:
        return _STEP_LABELS[self]

    @property
    def is_dispatchable(self) -> bool:
        """Whether steps of this kind are dispatched to a queue."""
        return self in DISPATCHABLE_STEP_KINDS

    @property
    def is_conditional(self) -> bool:
        """Whether steps of this kind carry a starts_when condition."""
        return self is not StepKind.PARALLEL


_STEP_LABELS: dict[StepKind, str] = {
    StepKind.SIMPLE: 'Simple',
    StepKind.FAN_OUT: 'FanOut',
    StepKind.CHOICE: 'Choice',
    StepKind.PARALLEL: 'Parallel',
    StepKind.EXTERNAL: 'External',
    StepKind.TERMINAL: 'Terminal',
}

DISPATCHABLE_STEP_KINDS: frozenset[StepKind] = frozenset(
    {
        StepKind.SIMPLE,
        StepKind.FAN_OUT,
        StepKind.CHOICE,
        StepKind.PARALLEL,
    }
)


class ConditionKind(str, Enum):
    """Variant tag of a Condition."""

    INITIAL = 'initial'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'
    CHOSEN = 'chosen'
    ALL = 'all'
    ANY = 'any'

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def is_group(self) -> bool:
        """Whether conditions of this kind hold child conditions."""
        return self in (ConditionKind.ALL, ConditionKind.ANY)
