"""Unit tests for workflow JSON serialization."""

from __future__ import annotations

import json

import pytest

from stepgraph.core.codec.serde import (
    SerializationError,
    dumps_json,
    dumps_workflow,
    loads_json,
    loads_workflow,
    workflow_from_json,
    workflow_to_json,
)
from stepgraph.core.errors import ErrorCode, WorkflowValidationError
from stepgraph.core.models.workflow import (
    AnyCondition,
    ChoiceStep,
    ChosenCondition,
    InitialCondition,
    MetadataEntry,
    SimpleStep,
    SucceededCondition,
    TerminalStep,
    Workflow,
    WorkflowBuilder,
)
from stepgraph.core.workflows import validate_workflow

pytestmark = pytest.mark.unit


def _small_workflow() -> Workflow:
    return Workflow(
        name='wf',
        description='small',
        steps=(
            SimpleStep(name='a', queue_name='q', starts_when=InitialCondition()),
            TerminalStep(starts_when=SucceededCondition(step_name='a')),
        ),
        metadata=(MetadataEntry(key='owner', value='team'),),
    )


class TestJsonPrimitives:
    def test_dumps_is_compact(self) -> None:
        assert dumps_json({'a': [1, 2]}) == '{"a":[1,2]}'

    def test_dumps_keeps_non_ascii(self) -> None:
        assert dumps_json('größe') == '"größe"'

    def test_dumps_rejects_nan(self) -> None:
        with pytest.raises(SerializationError):
            dumps_json(float('nan'))

    def test_dumps_rejects_unserializable(self) -> None:
        with pytest.raises(SerializationError):
            dumps_json(object())  # type: ignore[arg-type]

    def test_loads_empty_is_none(self) -> None:
        assert loads_json('') is None
        assert loads_json(None) is None

    def test_loads_invalid(self) -> None:
        with pytest.raises(SerializationError, match='Invalid JSON'):
            loads_json('{not json')


class TestWorkflowJson:
    def test_wire_shape(self) -> None:
        assert workflow_to_json(_small_workflow()) == {
            'name': 'wf',
            'description': 'small',
            'steps': [
                {
                    'type': 'simple',
                    'name': 'a',
                    'queue_name': 'q',
                    'starts_when': {'type': 'initial'},
                    'delay_by_seconds': 0,
                },
                {
                    'type': 'terminal',
                    'name': 'terminal',
                    'starts_when': {'type': 'succeeded', 'step_name': 'a'},
                },
            ],
            'metadata': [{'key': 'owner', 'value': 'team'}],
        }

    def test_round_trip_through_string(self) -> None:
        b = WorkflowBuilder('orders', 'Zahlung prüfen')
        charge = b.simple_step('charge').is_initial().queue_to('payments').delay_by(5)
        review = (
            b.choice_step('review')
            .start_when(b.succeeded(charge))
            .with_options('approve', 'reject')
            .queue_to('manual')
        )
        b.terminal_step().start_when(
            b.any(b.chosen(review, 'approve'), b.chosen(review, 'reject'))
        )
        wf = b.build()

        text = dumps_workflow(wf)
        assert 'prüfen' in text
        assert loads_workflow(text) == wf

    def test_decoded_variants(self) -> None:
        payload = {
            'name': 'wf',
            'steps': [
                {'type': 'choice', 'name': 'pick', 'queue_name': 'q',
                 'starts_when': {'type': 'initial'}, 'options': ['x', 'y']},
                {'type': 'terminal', 'name': 'terminal',
                 'starts_when': {'type': 'any', 'conditions': [
                     {'type': 'chosen', 'step_name': 'pick', 'result': 'x'},
                     {'type': 'chosen', 'step_name': 'pick', 'result': 'y'},
                 ]}},
            ],
        }
        wf = workflow_from_json(payload)
        choice, terminal = wf.steps
        assert isinstance(choice, ChoiceStep)
        assert choice.options == ('x', 'y')
        assert isinstance(terminal, TerminalStep)
        assert terminal.starts_when == AnyCondition(
            conditions=(
                ChosenCondition(step_name='pick', result='x'),
                ChosenCondition(step_name='pick', result='y'),
            )
        )

    def test_decoding_does_not_validate_graph(self) -> None:
        wf = workflow_from_json(
            {'name': 'wf', 'steps': [{'type': 'simple', 'name': 'lonely'}]}
        )
        assert wf.steps[0].name == 'lonely'

    def test_non_object_rejected(self) -> None:
        with pytest.raises(SerializationError, match='must be an object'):
            workflow_from_json(['not', 'a', 'workflow'])

    def test_unknown_step_type_rejected(self) -> None:
        with pytest.raises(SerializationError):
            workflow_from_json(
                {'name': 'wf', 'steps': [{'type': 'loop', 'name': 'a'}]}
            )

    def test_missing_name_rejected(self) -> None:
        with pytest.raises(SerializationError):
            loads_workflow(json.dumps({'steps': []}))

    def test_malformed_json_rejected(self) -> None:
        with pytest.raises(SerializationError):
            loads_workflow('{"name": ')


def _nested_all_document(depth: int) -> str:
    """Terminal step gated by `depth` nested All groups, written without json.dumps."""
    condition = '{"type":"all","conditions":[' * depth + ']}' * depth
    return (
        '{"name":"wf","steps":[{"type":"terminal","name":"terminal","starts_when":'
        + condition
        + '}]}'
    )


class TestDeepNesting:
    """Adversarially deep condition trees fail cleanly."""

    def test_too_deep_to_decode(self) -> None:
        with pytest.raises(SerializationError, match='nested too deeply') as exc_info:
            loads_workflow(_nested_all_document(50_000))
        assert isinstance(exc_info.value.__cause__, RecursionError)

    def test_loads_json_too_deep(self) -> None:
        with pytest.raises(SerializationError):
            loads_json('[' * 50_000 + ']' * 50_000)

    def test_decodable_depth_is_left_to_validator(self) -> None:
        wf = loads_workflow(_nested_all_document(100))

        with pytest.raises(WorkflowValidationError) as exc_info:
            validate_workflow(wf)
        assert exc_info.value.code == ErrorCode.WORKFLOW_CONDITION_TOO_DEEP
