"""ImportService: validates an upload, parses it, and returns a preview.

Nothing is persisted here. The pipeline for one request is

    lookup source -> size check -> sniff -> parse (bounded) -> outcome

and every path ends in exactly one terminal ImportState.
"""

import logging
from dataclasses import dataclass
from typing import assert_never

from mindweave.importer.config import ImportLimits
from mindweave.importer.errors import (
    FileTooLarge,
    FormatMismatch,
    ImportPipelineError,
    ImportTimeout,
    InvalidSourceType,
    ParserFatalError,
)
from mindweave.importer.guard import Deadline, run_bounded
from mindweave.importer.models import ParseResult
from mindweave.importer.parsers.bookmarks import parse_bookmarks
from mindweave.importer.parsers.detection import REJECTION_MESSAGES, is_pocket_csv, is_valid_format
from mindweave.importer.parsers.evernote import parse_evernote
from mindweave.importer.parsers.notion import parse_notion
from mindweave.importer.parsers.pocket import parse_pocket, parse_pocket_csv
from mindweave.importer.parsers.twitter import parse_twitter_bookmarks
from mindweave.importer.sources import ImportSourceConfig, SourceKind, lookup_source
from mindweave.importer.state import ImportOutcome, ImportRun, ImportState
from mindweave.utils.text import decode_text

logger = logging.getLogger(__name__)

_TERMINAL_FOR_ERROR: dict[type[ImportPipelineError], ImportState] = {
    InvalidSourceType: ImportState.REJECTED_UNKNOWN_SOURCE,
    FileTooLarge: ImportState.REJECTED_TOO_LARGE,
    FormatMismatch: ImportState.REJECTED_INVALID_FORMAT,
    ImportTimeout: ImportState.TIMED_OUT,
    ParserFatalError: ImportState.FAILED,
}


@dataclass(frozen=True)
class RawUpload:
    content: bytes
    source: str | None
    filename: str | None = None


class ImportService:
    def __init__(self, limits: ImportLimits | None = None) -> None:
        self._limits = limits or ImportLimits()

    @property
    def limits(self) -> ImportLimits:
        return self._limits

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve_source(self, source: str | None) -> ImportSourceConfig:
        """Look up the declared source. Raises InvalidSourceType."""
        config = lookup_source(source)
        if config is None:
            raise InvalidSourceType(source)
        return config

    def check_size(self, size: int) -> None:
        """Raises FileTooLarge if `size` exceeds the upload ceiling."""
        if size > self._limits.max_upload_bytes:
            raise FileTooLarge(size, self._limits.max_upload_bytes)

    async def preview(self, upload: RawUpload) -> ImportOutcome:
        """Run the whole pipeline for one upload. Never raises for import errors."""
        run = ImportRun()
        try:
            config = self.resolve_source(upload.source)
            self.check_size(len(upload.content))
            run.advance(ImportState.SIZE_CHECKED)

            if not is_valid_format(config.id, upload.content, upload.filename):
                raise FormatMismatch(REJECTION_MESSAGES[config.id])
            run.advance(ImportState.SNIFFED)

            run.advance(ImportState.PARSING)
            result = await run_bounded(
                lambda deadline: self._parse(config.id, upload, deadline),
                self._limits.parse_timeout_seconds,
            )
        except ImportPipelineError as e:
            return self._finish_with_error(run, upload, e)
        except Exception:
            logger.exception("Unexpected error while parsing %s import", upload.source)
            run.advance(ImportState.FAILED)
            return ImportOutcome(
                state=run.state,
                result=ParseResult.failure("Failed to parse import file."),
                code="PARSE_FAILED",
                message="Failed to parse import file.",
                history=tuple(run.history),
            )

        run.advance(ImportState.COMPLETED)
        logger.info(
            "Parsed %s import %r: total=%d parsed=%d skipped=%d",
            config.id,
            upload.filename,
            result.stats.total,
            result.stats.parsed,
            result.stats.skipped,
        )
        return ImportOutcome(state=run.state, result=result, history=tuple(run.history))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _finish_with_error(self, run: ImportRun, upload: RawUpload, error: ImportPipelineError) -> ImportOutcome:
        state = _TERMINAL_FOR_ERROR.get(type(error), ImportState.FAILED)
        run.advance(state)
        if state in (ImportState.TIMED_OUT, ImportState.FAILED):
            logger.warning("Import of %s %r ended %s: %s", upload.source, upload.filename, state, error.message)
        else:
            logger.info("Import of %s %r rejected (%s)", upload.source, upload.filename, error.code)
        return ImportOutcome(
            state=state,
            result=ParseResult.failure(error.message),
            code=error.code,
            message=error.message,
            history=tuple(run.history),
        )

    def _parse(self, source: SourceKind, upload: RawUpload, deadline: Deadline) -> ParseResult:
        """Route to the parser for `source`."""
        interval = self._limits.deadline_check_interval
        match source:
            case SourceKind.BOOKMARKS:
                return parse_bookmarks(decode_text(upload.content), deadline, check_interval=interval)
            case SourceKind.POCKET:
                if is_pocket_csv(upload.filename):
                    return parse_pocket_csv(decode_text(upload.content), deadline, check_interval=interval)
                return parse_pocket(decode_text(upload.content), deadline, check_interval=interval)
            case SourceKind.NOTION:
                return parse_notion(upload.content, deadline, limits=self._limits, check_interval=interval)
            case SourceKind.EVERNOTE:
                return parse_evernote(upload.content, deadline, limits=self._limits, check_interval=interval)
            case SourceKind.TWITTER:
                return parse_twitter_bookmarks(decode_text(upload.content), deadline, check_interval=interval)
            case _:
                assert_never(source)
