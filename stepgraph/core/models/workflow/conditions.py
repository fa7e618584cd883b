"""Start conditions: a recursive boolean algebra over step outcomes."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .enums import ConditionKind


class _ConditionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str

    @property
    def kind(self) -> ConditionKind:
        return ConditionKind(self.type)


class InitialCondition(_ConditionBase):
    """Marks a step as an entry point of the workflow graph.

    Only valid as a step's own starts_when, never inside All/Any.
    """

    type: Literal['initial'] = 'initial'


class SucceededCondition(_ConditionBase):
    """Holds once the named step has succeeded."""

    type: Literal['succeeded'] = 'succeeded'
    step_name: str


class FailedCondition(_ConditionBase):
    """Holds once the named step has failed."""

    type: Literal['failed'] = 'failed'
    step_name: str


class ChosenCondition(_ConditionBase):
    """Holds once the named Choice step resolved to `result`."""

    type: Literal['chosen'] = 'chosen'
    step_name: str
    result: str


class AllCondition(_ConditionBase):
    """Holds when every child condition holds."""

    type: Literal['all'] = 'all'
    conditions: tuple[Condition, ...] = ()


class AnyCondition(_ConditionBase):
    """Holds when at least one child condition holds."""

    type: Literal['any'] = 'any'
    conditions: tuple[Condition, ...] = ()


Condition = Annotated[
    Union[
        InitialCondition,
        SucceededCondition,
        FailedCondition,
        ChosenCondition,
        AllCondition,
        AnyCondition,
    ],
    Field(discriminator='type'),
]
"""
Discriminated union of all condition variants (tag: `type`).
"""

StepReferenceCondition = SucceededCondition | FailedCondition | ChosenCondition
GroupCondition = AllCondition | AnyCondition

AllCondition.model_rebuild()
AnyCondition.model_rebuild()
