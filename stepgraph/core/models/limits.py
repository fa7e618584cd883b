# stepgraph/core/models/limits.py
from __future__ import annotations

import re
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from stepgraph.core import defaults
from stepgraph.core.errors import ConfigurationError, ErrorCode


class WorkflowLimits(BaseModel):
    """
    Size and charset limits enforced by the workflow validator.

    Defaults match the document contract shared with the execution engine.
    Override a limit only for documents that never leave this process.

    Fields:
    - name_pattern: Regex for step, queue and workflow names, metadata keys and choice options
    - max_name_length: Maximum step/queue name length
    - max_workflow_name_length: Maximum workflow name length
    - max_description_length: Maximum workflow description length
    - max_metadata_entries: Maximum number of metadata entries
    - max_metadata_key_length / max_metadata_value_length: Metadata entry bounds
    - max_steps: Maximum number of steps per workflow
    - max_option_length: Maximum choice option / chosen result length
    - max_condition_depth: Maximum nesting of All/Any conditions
    """

    model_config = ConfigDict(frozen=True)

    name_pattern: str = Field(
        default=defaults.NAME_PATTERN,
        description='Regex that every identifier-like value must fully match',
    )
    max_name_length: Annotated[int, Field(ge=1)] = Field(
        default=defaults.MAX_NAME_LENGTH,
        description='Maximum step and queue name length',
    )
    max_workflow_name_length: Annotated[int, Field(ge=1)] = Field(
        default=defaults.MAX_WORKFLOW_NAME_LENGTH,
        description='Maximum workflow name length',
    )
    max_description_length: Annotated[int, Field(ge=1)] = Field(
        default=defaults.MAX_DESCRIPTION_LENGTH,
        description='Maximum workflow description length',
    )
    max_metadata_entries: Annotated[int, Field(ge=1)] = Field(
        default=defaults.MAX_METADATA_ENTRIES,
        description='Maximum number of metadata entries',
    )
    max_metadata_key_length: Annotated[int, Field(ge=1)] = Field(
        default=defaults.MAX_METADATA_KEY_LENGTH,
        description='Maximum metadata key length',
    )
    max_metadata_value_length: Annotated[int, Field(ge=1)] = Field(
        default=defaults.MAX_METADATA_VALUE_LENGTH,
        description='Maximum metadata value length',
    )
    max_steps: Annotated[int, Field(ge=1)] = Field(
        default=defaults.MAX_STEPS,
        description='Maximum number of steps per workflow',
    )
    max_option_length: Annotated[int, Field(ge=1)] = Field(
        default=defaults.MAX_OPTION_LENGTH,
        description='Maximum choice option and chosen result length',
    )
    max_condition_depth: Annotated[int, Field(ge=1)] = Field(
        default=defaults.MAX_CONDITION_DEPTH,
        description='Maximum nesting depth of All/Any conditions',
    )

    @model_validator(mode='after')
    def validate_name_pattern(self) -> Self:
        try:
            compiled = re.compile(self.name_pattern)
        except re.error as e:
            raise ConfigurationError(
                message='name_pattern is not a valid regular expression',
                code=ErrorCode.CONFIG_INVALID_LIMITS,
                field_path='name_pattern',
                notes=[f'name_pattern={self.name_pattern!r}', f'regex error: {e}'],
                help_text='use a pattern such as ^[-_0-9a-zA-Z]+$',
            ) from e
        if compiled.fullmatch('') is not None:
            raise ConfigurationError(
                message='name_pattern must not accept an empty name',
                code=ErrorCode.CONFIG_INVALID_LIMITS,
                field_path='name_pattern',
                notes=[f'name_pattern={self.name_pattern!r}'],
                help_text='require at least one character, e.g. with + instead of *',
            )
        return self

    def compiled_name_pattern(self) -> re.Pattern[str]:
        return re.compile(self.name_pattern)


DEFAULT_LIMITS = WorkflowLimits()
