"""Step dependency graph: terminal/initial checks, cycle and reachability."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field

from stepgraph.core.errors import ErrorCode, workflow_validation_error
from stepgraph.core.models.workflow import (
    AllCondition,
    AnyCondition,
    ChosenCondition,
    Condition,
    FailedCondition,
    InitialCondition,
    ParallelStep,
    SucceededCondition,
    TerminalStep,
    Workflow,
)


def iter_referenced_step_names(condition: Condition) -> Iterator[str]:
    """Yield every step name a condition tree mentions, depth-first."""
    if isinstance(condition, (SucceededCondition, FailedCondition, ChosenCondition)):
        yield condition.step_name
    elif isinstance(condition, (AllCondition, AnyCondition)):
        for child in condition.conditions:
            yield from iter_referenced_step_names(child)


@dataclass
class StepGraph:
    """
    Directed graph over step names.

    Edges run from a dependency to its dependents: a step referenced by a
    condition points at the step owning that condition, and a FanOut step
    points at every Parallel step fanned out from it.
    """

    nodes: list[str] = field(default_factory=lambda: [])
    edges: dict[str, list[str]] = field(default_factory=lambda: {})

    def add_node(self, name: str) -> None:
        if name not in self.edges:
            self.nodes.append(name)
            self.edges[name] = []

    def add_edge(self, source: str, target: str) -> None:
        self.add_node(source)
        self.add_node(target)
        if target not in self.edges[source]:
            self.edges[source].append(target)

    def successors(self, name: str) -> list[str]:
        return self.edges.get(name, [])

    @classmethod
    def from_workflow(cls, workflow: Workflow) -> StepGraph:
        graph = cls()
        for step in workflow.steps:
            graph.add_node(step.name)
        for step in workflow.steps:
            if isinstance(step, ParallelStep):
                graph.add_edge(step.fan_out_from, step.name)
            elif step.starts_when is not None:
                for dependency in iter_referenced_step_names(step.starts_when):
                    graph.add_edge(dependency, step.name)
        return graph

    def find_cycle(self) -> str | None:
        """Return a step on a cycle, or None if the graph is acyclic.

        Iterative DFS from every unvisited node in insertion order with a
        recursion-stack set; reaching a node already on the stack is a
        back edge, and that node is returned.
        """
        visited: set[str] = set()
        on_stack: set[str] = set()

        for root in self.nodes:
            if root in visited:
                continue
            visited.add(root)
            on_stack.add(root)
            stack: list[tuple[str, Iterator[str]]] = [(root, iter(self.successors(root)))]

            while stack:
                node, children = stack[-1]
                child = next(children, None)
                if child is None:
                    on_stack.discard(node)
                    stack.pop()
                    continue
                if child in on_stack:
                    return child
                if child in visited:
                    continue
                visited.add(child)
                on_stack.add(child)
                stack.append((child, iter(self.successors(child))))

        return None

    def reachable_from(self, start: str) -> set[str]:
        """Breadth-first closure of `start` (including itself)."""
        seen = {start}
        queue: deque[str] = deque([start])
        while queue:
            node = queue.popleft()
            for child in self.successors(node):
                if child not in seen:
                    seen.add(child)
                    queue.append(child)
        return seen


def validate_graph(workflow: Workflow) -> None:
    """Check terminal/initial steps, acyclicity and terminal reachability.

    Assumes field and condition checks already passed, so every referenced
    name exists and step names are unique apart from repeated Terminal
    steps, which are reported here.

    Raises:
        WorkflowValidationError: On the first violated rule.
    """
    index_by_name: dict[str, int] = {}
    terminal: TerminalStep | None = None
    initial_steps: list[str] = []

    for i, step in enumerate(workflow.steps):
        index_by_name.setdefault(step.name, i)
        if isinstance(step, TerminalStep):
            if terminal is not None:
                raise workflow_validation_error(
                    'multiple terminal steps are not allowed',
                    code=ErrorCode.WORKFLOW_MULTIPLE_TERMINAL_STEPS,
                    field_path=f'Workflow.Steps[{i}]',
                    notes=['a workflow has exactly one terminal step'],
                )
            terminal = step
        starts_when = getattr(step, 'starts_when', None)
        if isinstance(starts_when, InitialCondition):
            initial_steps.append(step.name)

    if terminal is None:
        raise workflow_validation_error(
            'terminal step is required',
            code=ErrorCode.WORKFLOW_NO_TERMINAL_STEP,
            field_path='Workflow.Steps',
            help_text='declare one terminal step, e.g. builder.terminal_step().start_when(...)',
        )

    if not initial_steps:
        raise workflow_validation_error(
            'initial step is required',
            code=ErrorCode.WORKFLOW_NO_INITIAL_STEP,
            field_path='Workflow.Steps',
            notes=['no step starts with an Initial condition'],
            help_text='mark at least one entry step with is_initial()',
        )

    graph = StepGraph.from_workflow(workflow)

    cycle_step = graph.find_cycle()
    if cycle_step is not None:
        raise workflow_validation_error(
            f"cycle detected involving step '{cycle_step}'",
            code=ErrorCode.WORKFLOW_CYCLE_DETECTED,
            field_path=f'Workflow.Steps[{index_by_name[cycle_step]}]',
            notes=['workflows must be acyclic directed graphs (DAG)'],
            help_text='remove circular dependencies between step conditions',
        )

    for name in initial_steps:
        if terminal.name not in graph.reachable_from(name):
            raise workflow_validation_error(
                f"terminal step is not reachable from initial step '{name}'",
                code=ErrorCode.WORKFLOW_TERMINAL_UNREACHABLE,
                field_path=f'Workflow.Steps[{index_by_name[name]}]',
                notes=[f"no chain of conditions leads from '{name}' to '{terminal.name}'"],
            )
