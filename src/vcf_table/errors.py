"""Exception hierarchy for VCF reading, writing and window ranking."""


class VCFTableError(Exception):
    """Base class for all vcf-table errors."""

    pass


class FormatError(VCFTableError, ValueError):
    """Raised when VCF text does not have the expected structure.

    Carries enough context to locate the problem without re-running:
    the 1-based line number, the raw line and, for field-count problems,
    the expected and actual counts.
    """

    def __init__(
        self,
        message: str,
        *,
        line_number: int | None = None,
        line: str | None = None,
        expected: int | None = None,
        actual: int | None = None,
    ):
        self.line_number = line_number
        self.line = line
        self.expected = expected
        self.actual = actual

        parts = [message]
        if line_number is not None:
            parts.insert(0, f"line {line_number}:")
        if expected is not None and actual is not None:
            parts.append(f"(expected {expected}, got {actual})")
        if line is not None:
            shown = line if len(line) <= 200 else line[:200] + "..."
            parts.append(f"-- {shown!r}")
        super().__init__(" ".join(parts))


class RangeError(VCFTableError, ValueError):
    """Raised when a variant position falls outside the supplied windows."""

    def __init__(
        self,
        message: str,
        *,
        row: int | None = None,
        position: int | None = None,
        last_end: int | None = None,
    ):
        self.row = row
        self.position = position
        self.last_end = last_end
        super().__init__(message)


class CancellationError(VCFTableError):
    """Raised when a cooperative cancellation request is observed.

    Not a fault: the operation was aborted on request. ``processed`` is the
    number of lines (or rows, for writers) fully handled before the abort.
    """

    def __init__(self, processed: int = 0, operation: str | None = None):
        self.processed = processed
        self.operation = operation
        what = operation or "operation"
        super().__init__(f"{what} cancelled after {processed} lines")
