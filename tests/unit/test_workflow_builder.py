"""Unit tests for WorkflowBuilder."""

from __future__ import annotations

from datetime import timedelta

import pytest

from stepgraph.core.errors import ErrorCode, WorkflowValidationError
from stepgraph.core.models.workflow import (
    AllCondition,
    AnyCondition,
    ChoiceStep,
    ChosenCondition,
    ExternalStep,
    FanOutStep,
    InitialCondition,
    MetadataEntry,
    ParallelStep,
    SimpleStep,
    StepKind,
    SucceededCondition,
    TerminalStep,
    Workflow,
    WorkflowBuilder,
)
from stepgraph.core.models.workflow.builder import StepBuilder
from stepgraph.core.workflows import validate_workflow

pytestmark = pytest.mark.unit


def _build_order_workflow() -> Workflow:
    b = WorkflowBuilder('test_workflow', 'Test workflow')
    b.metadata({'owner': 'stepgraph', 'version': '1'})

    task1 = b.simple_step('task1').is_initial().queue_to('main_queue')
    task2 = b.simple_step('task2').start_when(b.succeeded(task1)).queue_to('main_queue')
    task3 = (
        b.simple_step('task3')
        .start_when(b.succeeded(task2))
        .queue_to('main_queue')
        .delay_by(timedelta(seconds=10))
    )
    task4 = b.simple_step('task4').start_when(b.succeeded(task2)).queue_to('rate_limited')
    task5 = (
        b.fan_out_step('task5')
        .start_when(b.all(b.succeeded(task3), b.succeeded(task4)))
        .queue_to('main_queue')
    )
    task6 = (
        b.parallel_step('task6')
        .fan_out_from(task5)
        .queue_to('main_queue')
        .start_only_when_all_subtasks_created()
    )
    task7 = (
        b.choice_step('task7')
        .start_when(b.succeeded(task6))
        .with_options('option1', 'option2')
        .queue_to('main_queue')
    )
    task8 = b.simple_step('task8').start_when(b.chosen(task7, 'option1')).queue_to('main_queue')
    task9 = (
        b.simple_step('task9')
        .start_when(b.any(b.chosen(task7, 'option2'), b.succeeded(task8)))
        .queue_to('main_queue')
    )
    b.terminal_step().start_when(b.succeeded(task9))
    return b.build()


class TestEndToEnd:
    """A ten-step workflow built fluently matches the hand-written document."""

    def test_matches_hand_built_document(self) -> None:
        expected = Workflow(
            name='test_workflow',
            description='Test workflow',
            metadata=(
                MetadataEntry(key='owner', value='stepgraph'),
                MetadataEntry(key='version', value='1'),
            ),
            steps=(
                SimpleStep(
                    name='task1', queue_name='main_queue', starts_when=InitialCondition()
                ),
                SimpleStep(
                    name='task2',
                    queue_name='main_queue',
                    starts_when=SucceededCondition(step_name='task1'),
                ),
                SimpleStep(
                    name='task3',
                    queue_name='main_queue',
                    starts_when=SucceededCondition(step_name='task2'),
                    delay_by_seconds=10,
                ),
                SimpleStep(
                    name='task4',
                    queue_name='rate_limited',
                    starts_when=SucceededCondition(step_name='task2'),
                ),
                FanOutStep(
                    name='task5',
                    queue_name='main_queue',
                    starts_when=AllCondition(
                        conditions=(
                            SucceededCondition(step_name='task3'),
                            SucceededCondition(step_name='task4'),
                        )
                    ),
                ),
                ParallelStep(
                    name='task6',
                    queue_name='main_queue',
                    fan_out_from='task5',
                    start_only_when_all_subtasks_created=True,
                ),
                ChoiceStep(
                    name='task7',
                    queue_name='main_queue',
                    starts_when=SucceededCondition(step_name='task6'),
                    options=('option1', 'option2'),
                ),
                SimpleStep(
                    name='task8',
                    queue_name='main_queue',
                    starts_when=ChosenCondition(step_name='task7', result='option1'),
                ),
                SimpleStep(
                    name='task9',
                    queue_name='main_queue',
                    starts_when=AnyCondition(
                        conditions=(
                            ChosenCondition(step_name='task7', result='option2'),
                            SucceededCondition(step_name='task8'),
                        )
                    ),
                ),
                TerminalStep(starts_when=SucceededCondition(step_name='task9')),
            ),
        )
        assert _build_order_workflow() == expected

    def test_built_workflow_is_valid(self) -> None:
        validate_workflow(_build_order_workflow())

    def test_must_build_matches_build(self) -> None:
        b = WorkflowBuilder('wf')
        a = b.simple_step('a').is_initial().queue_to('q')
        b.terminal_step().start_when(b.succeeded(a))
        assert b.must_build() == b.build()


class TestStepConfiguration:
    """Tests for per-step fluent configuration."""

    def test_delay_by_whole_seconds(self) -> None:
        b = WorkflowBuilder('wf')
        b.simple_step('a').is_initial().queue_to('q').delay_by(7)
        step = b.build().steps[0]
        assert isinstance(step, SimpleStep)
        assert step.delay_by_seconds == 7

    def test_delay_by_truncates_sub_seconds(self) -> None:
        b = WorkflowBuilder('wf')
        b.simple_step('a').delay_by(timedelta(seconds=1, milliseconds=900))
        step = b.build().steps[0]
        assert isinstance(step, SimpleStep)
        assert step.delay_by_seconds == 1

    def test_is_initial_replaces_condition(self) -> None:
        b = WorkflowBuilder('wf')
        a = b.simple_step('a')
        c = b.simple_step('c').start_when(b.succeeded(a)).is_initial()
        step = b.build().get_step(c.name)
        assert isinstance(step, SimpleStep)
        assert step.starts_when == InitialCondition()

    def test_start_when_replaces_initial(self) -> None:
        b = WorkflowBuilder('wf')
        a = b.simple_step('a')
        b.simple_step('c').is_initial().start_when(b.failed(a))
        step = b.build().get_step('c')
        assert isinstance(step, SimpleStep)
        assert step.starts_when is not None
        assert step.starts_when.kind.value == 'failed'

    def test_with_options_replaces_options(self) -> None:
        b = WorkflowBuilder('wf')
        b.choice_step('c').with_options('a', 'b').with_options('x')
        step = b.build().steps[0]
        assert isinstance(step, ChoiceStep)
        assert step.options == ('x',)

    def test_external_step(self) -> None:
        b = WorkflowBuilder('wf')
        b.external_step('approval').is_initial()
        step = b.build().steps[0]
        assert isinstance(step, ExternalStep)
        assert step.starts_when == InitialCondition()

    def test_unconfigured_steps_still_build(self) -> None:
        b = WorkflowBuilder('wf')
        b.simple_step('a')
        b.parallel_step('p')
        wf = b.build()
        simple, parallel = wf.steps
        assert isinstance(simple, SimpleStep)
        assert simple.starts_when is None
        assert isinstance(parallel, ParallelStep)
        assert parallel.fan_out_from == ''

    def test_configuration_is_read_at_build_time(self) -> None:
        b = WorkflowBuilder('wf')
        a = b.simple_step('a').is_initial()
        b.terminal_step().start_when(b.succeeded(a))
        a.queue_to('late_queue')
        step = b.build().steps[0]
        assert isinstance(step, SimpleStep)
        assert step.queue_name == 'late_queue'


class TestWorkflowAssembly:
    """Tests for step order, forward references and metadata."""

    def test_steps_keep_declaration_order(self) -> None:
        b = WorkflowBuilder('wf')
        b.simple_step('b')
        b.fan_out_step('a')
        b.terminal_step()
        assert [step.name for step in b.build().steps] == ['b', 'a', 'terminal']

    def test_forward_reference(self) -> None:
        """A step may reference a step declared after it."""
        b = WorkflowBuilder('wf')
        first = b.simple_step('first').queue_to('q')
        second = b.simple_step('second').is_initial().queue_to('q')
        first.start_when(b.succeeded(second))
        b.terminal_step().start_when(b.succeeded(first))

        wf = b.build()
        assert [step.name for step in wf.steps] == ['first', 'second', 'terminal']
        validate_workflow(wf)

    def test_build_is_repeatable(self) -> None:
        b = WorkflowBuilder('wf')
        a = b.simple_step('a').is_initial().queue_to('q')
        b.terminal_step().start_when(b.succeeded(a))
        assert b.build() == b.build()

    def test_metadata_accumulates(self) -> None:
        b = WorkflowBuilder('wf')
        b.metadata({'a': '1'}).metadata({'b': '2'})
        assert b.build().metadata_dict() == {'a': '1', 'b': '2'}

    def test_repeated_metadata_key_is_caught_by_validation(self) -> None:
        b = WorkflowBuilder('wf')
        a = b.simple_step('a').is_initial().queue_to('q')
        b.terminal_step().start_when(b.succeeded(a))
        b.metadata({'k': '1'})
        b.metadata({'k': '2'})

        wf = b.build()
        assert len(wf.metadata) == 2
        with pytest.raises(WorkflowValidationError) as exc_info:
            validate_workflow(wf)
        assert exc_info.value.code == ErrorCode.WORKFLOW_DUPLICATE_METADATA_KEY
        assert exc_info.value.field_path == 'Workflow.Metadata[1].Key'

    def test_handle_repr(self) -> None:
        b = WorkflowBuilder('wf')
        assert repr(b.choice_step('pick')) == "ChoiceStepBuilder(name='pick')"


class TestStepBuilderBase:
    """StepBuilder variants must implement _build()."""

    def test_base_cannot_be_instantiated(self) -> None:
        with pytest.raises(TypeError):
            StepBuilder('a')  # type: ignore[abstract]

    def test_variant_without_build_fails_at_declaration(self) -> None:
        class _Unfinished(StepBuilder):
            kind = StepKind.SIMPLE

        with pytest.raises(TypeError, match='_build'):
            _Unfinished('a')  # type: ignore[abstract]
