"""Tab-delimited field splitting for VCF lines."""

import logging

from .errors import FormatError

logger = logging.getLogger(__name__)


def split_fields(
    line: str,
    expected: int,
    line_number: int | None = None,
    strict: bool = True,
) -> list[str]:
    """Split a line into exactly ``expected`` tab-separated fields.

    The trailing newline (``\\n`` or ``\\r\\n``) is removed first.

    Args:
        line: Raw line text.
        expected: Number of fields the line must hold.
        line_number: 1-based line number, used in error messages.
        strict: If False, surplus tabs are absorbed into the last field
            instead of raising.

    Returns:
        List of ``expected`` field strings.

    Raises:
        FormatError: If the line has too few fields, or too many in strict mode.
    """
    if expected < 1:
        raise ValueError(f"expected must be at least 1, got {expected}")

    text = line.rstrip("\r\n")
    fields = text.split("\t", expected - 1)

    if len(fields) < expected:
        raise FormatError(
            "too few fields",
            line_number=line_number,
            line=text,
            expected=expected,
            actual=len(fields),
        )

    if "\t" in fields[-1]:
        actual = expected + fields[-1].count("\t")
        if strict:
            raise FormatError(
                "too many fields",
                line_number=line_number,
                line=text,
                expected=expected,
                actual=actual,
            )
        logger.warning(
            "Line %s has %d fields, absorbing %d surplus into the last field",
            line_number if line_number is not None else "?",
            actual,
            actual - expected,
        )

    return fields
