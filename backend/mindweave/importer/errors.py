"""File-level import failures.

Record-level problems never raise; parsers record them on the result.
Everything here aborts the whole request and carries a message meant to
be shown to the end user as-is.
"""


class ImportPipelineError(Exception):
    def __init__(self, message: str, code: str = "IMPORT_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidSourceType(ImportPipelineError):
    def __init__(self, source: str | None):
        super().__init__(f"Invalid import source: {source}", code="INVALID_SOURCE")


class FileTooLarge(ImportPipelineError):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"File too large. Maximum size is {limit // (1024 * 1024)}MB.",
            code="FILE_TOO_LARGE",
        )


class FormatMismatch(ImportPipelineError):
    def __init__(self, message: str):
        super().__init__(message, code="FORMAT_MISMATCH")


class ParserFatalError(ImportPipelineError):
    def __init__(self, message: str):
        super().__init__(message, code="PARSE_FAILED")


class ImportTimeout(ImportPipelineError):
    def __init__(self, seconds: float):
        self.seconds = seconds
        super().__init__(
            f"Import timed out after {seconds:g} seconds. Try splitting the export into smaller files.",
            code="TIMEOUT",
        )
