"""Lifecycle of a single import request."""

from dataclasses import dataclass, field
from enum import StrEnum

from mindweave.importer.models import ParseResult


class ImportState(StrEnum):
    RECEIVED = "received"
    SIZE_CHECKED = "size_checked"
    SNIFFED = "sniffed"
    PARSING = "parsing"
    COMPLETED = "completed"
    REJECTED_UNKNOWN_SOURCE = "rejected_unknown_source"
    REJECTED_TOO_LARGE = "rejected_too_large"
    REJECTED_INVALID_FORMAT = "rejected_invalid_format"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


_TRANSITIONS: dict[ImportState, frozenset[ImportState]] = {
    ImportState.RECEIVED: frozenset({
        ImportState.SIZE_CHECKED,
        ImportState.REJECTED_UNKNOWN_SOURCE,
        ImportState.REJECTED_TOO_LARGE,
        ImportState.FAILED,
    }),
    ImportState.SIZE_CHECKED: frozenset({
        ImportState.SNIFFED,
        ImportState.REJECTED_INVALID_FORMAT,
        ImportState.FAILED,
    }),
    ImportState.SNIFFED: frozenset({ImportState.PARSING, ImportState.FAILED}),
    ImportState.PARSING: frozenset({
        ImportState.COMPLETED,
        ImportState.TIMED_OUT,
        ImportState.FAILED,
    }),
}

TERMINAL_STATES = frozenset(s for s in ImportState if s not in _TRANSITIONS)


class ImportRun:
    """Tracks one request through the pipeline. Terminal states are final."""

    def __init__(self) -> None:
        self.state = ImportState.RECEIVED
        self.history: list[ImportState] = [ImportState.RECEIVED]

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, new_state: ImportState) -> None:
        allowed = _TRANSITIONS.get(self.state, frozenset())
        if new_state not in allowed:
            raise RuntimeError(f"Illegal import transition {self.state} -> {new_state}")
        self.state = new_state
        self.history.append(new_state)


@dataclass(frozen=True)
class ImportOutcome:
    state: ImportState
    result: ParseResult
    code: str | None = None
    message: str | None = None
    history: tuple[ImportState, ...] = field(default_factory=tuple)

    @property
    def success(self) -> bool:
        return self.state == ImportState.COMPLETED
