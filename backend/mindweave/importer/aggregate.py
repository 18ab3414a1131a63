"""ParseAccumulator: collects per-record outcomes into a ParseResult.

Every record a parser encounters goes through exactly one of add(),
skip_with_error() or skip_with_warning(), so total/parsed/skipped stay
consistent by construction.
"""

from mindweave.importer.guard import Deadline
from mindweave.importer.models import ParsedItem, ParseError, ParseResult, ParseStats


class ParseAccumulator:
    def __init__(self, deadline: Deadline | None = None, *, check_interval: int = 1) -> None:
        self._deadline = deadline or Deadline.unbounded()
        self._check_interval = max(1, check_interval)
        self._items: list[ParsedItem] = []
        self._errors: list[ParseError] = []
        self._warnings: list[str] = []
        self._skipped = 0

    @property
    def deadline(self) -> Deadline:
        return self._deadline

    @property
    def total(self) -> int:
        return len(self._items) + self._skipped

    def add(self, item: ParsedItem) -> None:
        self._items.append(item)
        self._tick()

    def skip_with_error(self, item: str | None, message: str) -> None:
        self._errors.append(ParseError(item=item, message=message))
        self._skipped += 1
        self._tick()

    def skip_with_warning(self, message: str) -> None:
        self._warnings.append(message)
        self._skipped += 1
        self._tick()

    def warn(self, message: str) -> None:
        """Record a warning that does not skip a record."""
        self._warnings.append(message)

    def build(self) -> ParseResult:
        return ParseResult(
            success=True,
            items=list(self._items),
            errors=list(self._errors),
            warnings=list(self._warnings),
            stats=ParseStats(
                total=self.total,
                parsed=len(self._items),
                skipped=self._skipped,
            ),
        )

    def _tick(self) -> None:
        if self.total % self._check_interval == 0:
            self._deadline.check()
