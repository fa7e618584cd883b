# stepgraph/core/codec/serde.py
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Union, cast

from pydantic import ValidationError

from stepgraph.core.logging import get_logger
from stepgraph.core.models.workflow import Workflow

logger = get_logger('serde')


Json = Union[None, bool, int, float, str, List['Json'], Dict[str, 'Json']]
"""
Union type for JSON-serializable values.
"""


class SerializationError(Exception):
    """
    Raised when a value cannot be serialized to or deserialized from JSON.
    """

    pass


def dumps_json(value: Json) -> str:
    """
    Serialize a JSON value to a compact JSON string.

    Non-ASCII text is kept as is; NaN/Infinity are rejected.
    """
    try:
        return json.dumps(
            value,
            ensure_ascii=False,
            separators=(',', ':'),
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise SerializationError(f'Cannot serialize value: {e}') from e


def loads_json(s: Optional[str]) -> Json:
    """
    Deserialize a JSON string to a JSON value.

    Returns None for an empty or None input. Input nested deeper than the
    interpreter can decode raises SerializationError.
    """
    if not s:
        return None
    try:
        return cast(Json, json.loads(s))
    except json.JSONDecodeError as e:
        raise SerializationError(f'Invalid JSON: {e}') from e
    except RecursionError as e:
        raise SerializationError('JSON is nested too deeply') from e


def workflow_to_json(workflow: Workflow) -> Dict[str, Json]:
    """
    Convert a Workflow to its wire shape.

    Returns:
        A dict with keys "name", "description", "steps" and "metadata".
        Steps and conditions carry their variant in a "type" key, e.g.
        {"type": "succeeded", "step_name": "fetch"}.
    """
    return cast(Dict[str, Json], workflow.model_dump(mode='json'))


def workflow_from_json(value: Any) -> Workflow:
    """
    Rebuild a Workflow from its wire shape.

    Only the shape is checked; run validate_workflow() on the result.

    Raises:
        SerializationError: If `value` does not have the Workflow shape.
    """
    if not isinstance(value, dict):
        raise SerializationError(
            f'Workflow JSON must be an object, got {type(value).__name__}'
        )
    try:
        return Workflow.model_validate(value)
    except ValidationError as e:
        logger.debug(f'Workflow JSON did not match the document shape: {e}')
        raise SerializationError(
            f'Workflow JSON does not match the document shape ({e.error_count()} errors)'
        ) from e
    except RecursionError as e:
        raise SerializationError('Workflow JSON is nested too deeply') from e


def dumps_workflow(workflow: Workflow) -> str:
    """Serialize a Workflow to a JSON string."""
    return dumps_json(workflow_to_json(workflow))


def loads_workflow(s: str) -> Workflow:
    """
    Deserialize a Workflow from a JSON string.

    Raises:
        SerializationError: On malformed JSON or a mismatched shape.
    """
    return workflow_from_json(loads_json(s))
