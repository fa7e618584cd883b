"""Rust-style error display for stepgraph validation/config errors."""

from __future__ import annotations

import inspect
import linecache
import os
import sys
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Absolute path to the stepgraph package directory.
# Used by _find_user_frame to distinguish library frames from user code.
_STEPGRAPH_PKG_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class ErrorCode(str, Enum):
    """Error codes for workflow validation and configuration errors.

    Organized by category:
    - E001-E099: Workflow validation errors
    - E200-E299: Config errors
    """

    # Workflow validation (E001-E099)
    WORKFLOW_REQUIRED_FIELD = 'E001'
    WORKFLOW_FIELD_TOO_LONG = 'E002'
    WORKFLOW_INVALID_CHARSET = 'E003'
    WORKFLOW_TOO_MANY_ITEMS = 'E004'
    WORKFLOW_DUPLICATE_NAME = 'E005'
    WORKFLOW_DUPLICATE_METADATA_KEY = 'E006'
    WORKFLOW_DUPLICATE_OPTION = 'E007'
    WORKFLOW_INVALID_DELAY = 'E008'
    WORKFLOW_UNKNOWN_STEP = 'E009'
    WORKFLOW_WRONG_STEP_KIND = 'E010'
    WORKFLOW_INVALID_CHOICE_RESULT = 'E011'
    WORKFLOW_NESTED_INITIAL = 'E012'
    WORKFLOW_EMPTY_CONDITION_GROUP = 'E013'
    WORKFLOW_CONDITION_TOO_DEEP = 'E014'
    WORKFLOW_NO_TERMINAL_STEP = 'E015'
    WORKFLOW_MULTIPLE_TERMINAL_STEPS = 'E016'
    WORKFLOW_NO_INITIAL_STEP = 'E017'
    WORKFLOW_CYCLE_DETECTED = 'E018'
    WORKFLOW_TERMINAL_UNREACHABLE = 'E019'

    # Config (E200-E299)
    CONFIG_INVALID_LIMITS = 'E200'


# ANSI color codes
class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[91m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    DIM = '\033[2m'


class _NoColors:
    """No-op color codes for non-TTY output."""

    RESET = ''
    BOLD = ''
    RED = ''
    BLUE = ''
    CYAN = ''
    GREEN = ''
    YELLOW = ''
    DIM = ''


def _env_flag(name: str) -> bool:
    return os.environ.get(name, '').lower() in ('1', 'true', 'yes')


def _should_use_colors() -> bool:
    """Determine if colors should be used in output."""
    if _env_flag('STEPGRAPH_FORCE_COLOR'):
        return True

    # Check NO_COLOR standard (https://no-color.org/)
    if os.environ.get('NO_COLOR') is not None:
        return False

    return hasattr(sys.stderr, 'isatty') and sys.stderr.isatty()


def _should_show_verbose() -> bool:
    """Determine if verbose output (full traceback) should be shown."""
    return _env_flag('STEPGRAPH_VERBOSE')


def _should_use_plain_errors() -> bool:
    """Determine if plain Python errors should be used instead of Rust-style."""
    return _env_flag('STEPGRAPH_PLAIN_ERRORS')


@dataclass
class SourceLocation:
    """Source code location information."""

    file: str
    line: int

    @classmethod
    def from_frame(cls, frame: Any) -> SourceLocation:
        """Create SourceLocation from a frame object."""
        return cls(
            file=frame.f_code.co_filename,
            line=frame.f_lineno,
        )

    def get_source_line(self) -> str | None:
        """Read the source line from the file."""
        line = linecache.getline(self.file, self.line)
        return line.rstrip('\n') if line else None

    def format_short(self) -> str:
        return f'{self.file}:{self.line}'


@dataclass
class StepgraphError(Exception):
    """Base exception for stepgraph validation/config errors.

    Provides Rust-style error formatting with:
    - Error code
    - Field path of the offending value
    - Source location with code snippet
    - Notes and help text
    """

    message: str
    code: ErrorCode | None = None
    field_path: str | None = None
    location: SourceLocation | None = None
    notes: list[str] = field(default_factory=lambda: [])
    help_text: str | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

        # Auto-detect location from call stack if not provided
        if self.location is None:
            user_frame = _find_user_frame()
            if user_frame is not None:
                self.location = SourceLocation.from_frame(user_frame)

    def format_rust_style(self, use_colors: bool | None = None) -> str:
        """Format the error in Rust style."""
        if use_colors is None:
            use_colors = _should_use_colors()

        c = _Colors if use_colors else _NoColors
        lines: list[str] = []

        # Leading blank line for visual separation from log output
        lines.append('')

        # Error header: error[E001]: message
        code_part = f'[{self.code.value}]' if self.code else ''
        lines.append(f'{c.BOLD}{c.RED}error{code_part}:{c.RESET} {self.message}')

        if self.location:
            source_line = self.location.get_source_line()

            lines.append(
                f'  {c.BLUE}-->{c.RESET} {c.CYAN}{self.location.format_short()}{c.RESET}'
            )

            if source_line:
                line_num = str(self.location.line)
                padding = ' ' * len(line_num)

                lines.append(f'   {c.BLUE}{padding}|{c.RESET}')
                lines.append(f'   {c.BLUE}{line_num}|{c.RESET} {source_line}')

                # Underline the whole line (trimmed)
                stripped = source_line.lstrip()
                indent = len(source_line) - len(stripped)
                underline = ' ' * indent + '^' * len(stripped)
                lines.append(
                    f'   {c.BLUE}{padding}|{c.RESET} {c.RED}{underline}{c.RESET}'
                )

        if self.field_path:
            lines.append(
                f'   {c.BLUE}={c.RESET} {c.BOLD}{c.YELLOW}field{c.RESET}: {self.field_path}'
            )

        # Notes (support multi-line notes with continuation indentation)
        for note in self.notes:
            note_lines = note.split('\n')
            lines.append(
                f'   {c.BLUE}={c.RESET} {c.BOLD}{c.BLUE}note{c.RESET}: {note_lines[0]}'
            )
            for note_line in note_lines[1:]:
                lines.append(f'          {note_line}')

        if self.help_text:
            lines.append('')
            help_lines = self.help_text.split('\n')
            lines.append(f'   {c.BLUE}={c.RESET} {c.BOLD}{c.GREEN}help{c.RESET}:')
            for help_line in help_lines:
                lines.append(f'        {help_line}')

        return '\n'.join(lines)

    def __str__(self) -> str:
        """String representation uses plain text (no ANSI colors).

        Colors are only used when printing directly to terminal via
        the custom exception hook, so the string stays safe for logs
        and JSON payloads.
        """
        return self.format_rust_style(use_colors=False)


# Store original excepthook
_original_excepthook = sys.excepthook


def _stepgraph_excepthook(
    exc_type: type[BaseException],
    exc_value: BaseException,
    exc_tb: Any,
) -> None:
    """Custom exception hook for StepgraphError exceptions."""
    # STEPGRAPH_PLAIN_ERRORS=1 bypasses custom formatting entirely
    if _should_use_plain_errors():
        _original_excepthook(exc_type, exc_value, exc_tb)
        return

    if isinstance(exc_value, StepgraphError):
        print(exc_value.format_rust_style(), file=sys.stderr)

        if _should_show_verbose():
            print(file=sys.stderr)
            c = _Colors if _should_use_colors() else _NoColors
            print(
                f'{c.DIM}Full traceback (STEPGRAPH_VERBOSE=1):{c.RESET}',
                file=sys.stderr,
            )
            traceback.print_exception(exc_type, exc_value, exc_tb, file=sys.stderr)
    else:
        _original_excepthook(exc_type, exc_value, exc_tb)


def install_error_handler() -> None:
    """Install the custom exception hook for Rust-style error display."""
    sys.excepthook = _stepgraph_excepthook


def uninstall_error_handler() -> None:
    """Restore the original exception hook."""
    sys.excepthook = _original_excepthook


# =============================================================================
# Specific Error Classes
# =============================================================================


@dataclass
class WorkflowValidationError(StepgraphError):
    """Raised when a workflow document is invalid."""

    pass


@dataclass
class ConfigurationError(StepgraphError):
    """Raised when validator configuration is invalid."""

    pass


# =============================================================================
# Helper Functions for Creating Errors
# =============================================================================


def _find_user_frame() -> Any | None:
    """Find the first frame outside of stepgraph internals.

    Walks up the call stack to find where user code called into stepgraph.
    """
    frame = inspect.currentframe()
    if frame is None:
        return None

    while frame is not None:
        filename = frame.f_code.co_filename

        # Skip synthetic frames (e.g., <string>, <module>)
        if filename.startswith('<'):
            frame = frame.f_back
            continue

        if not filename.startswith(_STEPGRAPH_PKG_DIR) and '/site-packages/' not in filename:
            return frame

        frame = frame.f_back

    return None


def workflow_validation_error(
    message: str,
    *,
    code: ErrorCode,
    field_path: str,
    notes: list[str] | None = None,
    help_text: str | None = None,
) -> WorkflowValidationError:
    """Create a WorkflowValidationError scoped to a document field."""
    return WorkflowValidationError(
        message=message,
        code=code,
        field_path=field_path,
        notes=notes or [],
        help_text=help_text,
    )
