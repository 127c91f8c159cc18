"""Streaming line-count pass over a VCF file."""

import gzip
import io
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO

from .errors import FormatError
from .hooks import CancellationToken, LineMonitor, ProgressObserver
from .models import FileStats
from .table import N_FIXED

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"
META_MARKER = "##"
HEADER_MARKER = "#"

# undecodable bytes survive as lone surrogates so iter_lines can locate them
DECODE_ERRORS = "surrogateescape"

VCFSource = str | os.PathLike | IO


def is_gzipped(path: Path | str) -> bool:
    """Check the first two bytes of a file for the gzip signature."""
    with open(path, "rb") as f:
        return f.read(2) == GZIP_MAGIC


def _peek_magic(stream: IO[bytes]) -> bytes:
    if hasattr(stream, "peek"):
        return stream.peek(2)[:2]
    if stream.seekable():
        offset = stream.tell()
        magic = stream.read(2)
        stream.seek(offset)
        return magic
    return b""


@contextmanager
def open_vcf(source: VCFSource) -> Iterator[IO[str]]:
    """Open a VCF source for text reading, decompressing gzip transparently.

    Paths are opened (and closed) here; gzip is detected from the file's
    magic bytes rather than its suffix. Open streams are used as given and
    are never closed: text streams are read directly, binary streams are
    wrapped and detached again afterwards.
    """
    if isinstance(source, str | os.PathLike):
        path = Path(source)
        if is_gzipped(path):
            handle = gzip.open(path, "rt", encoding="utf-8", errors=DECODE_ERRORS)
        else:
            handle = open(path, encoding="utf-8", errors=DECODE_ERRORS)
        with handle:
            yield handle
        return

    if isinstance(source, io.TextIOBase):
        yield source
        return

    raw = source
    gz = None
    if _peek_magic(source) == GZIP_MAGIC:
        gz = gzip.GzipFile(fileobj=source, mode="rb")
        raw = gz
    text = io.TextIOWrapper(raw, encoding="utf-8", errors=DECODE_ERRORS)
    try:
        yield text
    finally:
        text.detach()
        if gz is not None:
            gz.close()


def _check_utf8(line: str, line_number: int) -> None:
    try:
        line.encode("utf-8")
    except UnicodeEncodeError as e:
        shown = line.encode("utf-8", DECODE_ERRORS).decode("utf-8", "replace")
        raise FormatError(
            f"invalid UTF-8 byte at column {e.start + 1}", line_number=line_number, line=shown
        ) from None


def iter_lines(handle: IO[str]) -> Iterator[tuple[int, str]]:
    """Yield ``(line_number, line)`` pairs, numbering from 1.

    Invalid UTF-8 and truncated gzip data are reported as :class:`FormatError`
    naming the offending line.
    """
    line_number = 0
    try:
        for line in handle:
            line_number += 1
            if not line.isascii():
                _check_utf8(line, line_number)
            yield line_number, line
    except UnicodeDecodeError as e:
        raise FormatError(
            f"invalid UTF-8 text ({e.reason})", line_number=line_number + 1
        ) from None
    except EOFError:
        raise FormatError(
            "compressed stream ended unexpectedly", line_number=line_number + 1
        ) from None


def scan_file(
    source: VCFSource,
    *,
    progress: ProgressObserver | None = None,
    cancel: CancellationToken | None = None,
) -> FileStats:
    """Count meta lines, header position, variant rows and header columns.

    Args:
        source: Path to a plain or gzipped VCF, or an open stream.
        progress: Optional observer receiving per-line progress.
        cancel: Optional token checked once per line.

    Returns:
        FileStats for the file.

    Raises:
        FormatError: If markers are out of order, the header is missing or
            a second header appears, or the header has fewer than 8 columns.
        CancellationError: If ``cancel`` is triggered mid-pass.
    """
    meta_count = 0
    header_line = 0
    column_count = 0
    variant_count = 0

    monitor = LineMonitor("scan", progress, cancel)
    with open_vcf(source) as handle:
        for line_number, line in iter_lines(handle):
            monitor.check()

            if line.startswith(META_MARKER):
                if header_line:
                    raise FormatError(
                        "meta line after header line", line_number=line_number, line=line
                    )
                meta_count += 1
            elif line.startswith(HEADER_MARKER):
                if header_line:
                    raise FormatError("second header line", line_number=line_number, line=line)
                header_line = meta_count + 1
                column_count = line.rstrip("\r\n").count("\t") + 1
                if column_count < N_FIXED:
                    raise FormatError(
                        "header line has too few columns",
                        line_number=line_number,
                        line=line,
                        expected=N_FIXED,
                        actual=column_count,
                    )
            elif line.strip():
                if not header_line:
                    raise FormatError(
                        "variant record before header line", line_number=line_number, line=line
                    )
                variant_count += 1

            monitor.tick()

    monitor.done()

    if not header_line:
        raise FormatError("no header line found")

    stats = FileStats(
        meta_count=meta_count,
        header_line=header_line,
        variant_count=variant_count,
        column_count=column_count,
    )
    logger.info(
        "Scanned %d lines: %d meta, %d variants, %d columns",
        monitor.processed,
        meta_count,
        variant_count,
        column_count,
    )
    return stats


def count_lines(
    source: VCFSource,
    *,
    cancel: CancellationToken | None = None,
) -> int:
    """Count every line of a file, blank lines included."""
    monitor = LineMonitor("count lines", None, cancel)
    with open_vcf(source) as handle:
        for _ in iter_lines(handle):
            monitor.check()
            monitor.tick()
    return monitor.done()
