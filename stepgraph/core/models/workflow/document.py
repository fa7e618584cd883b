"""The Workflow document: the immutable value shared with execution engines."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from .steps import Step


class MetadataEntry(BaseModel):
    """A single key/value metadata pair. Keys must be unique per workflow."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: str = ''


class Workflow(BaseModel):
    """
    A workflow definition: an ordered list of steps wired by start conditions.

    Created by WorkflowBuilder.build() (or directly, e.g. in tests or when
    decoding) and never mutated afterwards. Construction only checks shapes;
    use validate_workflow() to enforce the graph invariants.

    Example:
        b = WorkflowBuilder('ingest', 'Fetch and store')
        fetch = b.simple_step('fetch').is_initial().queue_to('io')
        b.terminal_step().start_when(b.succeeded(fetch))
        workflow = b.build()
        validate_workflow(workflow)
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ''
    steps: tuple[Step, ...] = ()
    """
    - Steps in declaration order
    """
    metadata: tuple[MetadataEntry, ...] = ()
    """
    - Free-form key/value pairs; order is not significant
    """

    def get_step(self, name: str) -> Step | None:
        """Return the first step called `name`, or None."""
        for step in self.steps:
            if step.name == name:
                return step
        return None

    def metadata_dict(self) -> dict[str, str]:
        """Metadata as a dict; with duplicate keys the last entry wins."""
        return {entry.key: entry.value for entry in self.metadata}
