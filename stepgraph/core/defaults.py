"""Shared default limits for workflow documents.

These values are part of the document contract: other implementations
reading or writing the same workflows rely on them byte-for-byte.
"""

# Charset for step names, queue names, workflow names, metadata keys,
# choice options and chosen results.
NAME_PATTERN: str = r'^[-_0-9a-zA-Z]+$'

MAX_NAME_LENGTH: int = 128  # step and queue names
MAX_WORKFLOW_NAME_LENGTH: int = 128
MAX_DESCRIPTION_LENGTH: int = 1024

MAX_METADATA_ENTRIES: int = 32
MAX_METADATA_KEY_LENGTH: int = 128
MAX_METADATA_VALUE_LENGTH: int = 512

MAX_STEPS: int = 64

# Applies to ChoiceStep.options entries and ChosenCondition.result.
MAX_OPTION_LENGTH: int = 64

# Nesting bound for All/Any condition trees.
MAX_CONDITION_DEPTH: int = 32
