"""Verbatim extraction of leading ``##`` meta lines."""

import logging

from .errors import FormatError
from .hooks import CancellationToken, LineMonitor, ProgressObserver
from .models import FileStats
from .scanner import META_MARKER, VCFSource, iter_lines, open_vcf

logger = logging.getLogger(__name__)


def read_meta(
    source: VCFSource,
    stats: FileStats,
    *,
    progress: ProgressObserver | None = None,
    cancel: CancellationToken | None = None,
) -> list[str]:
    """Return the first ``stats.meta_count`` meta lines, newline stripped.

    Lines are not decomposed into key/value pairs. Reading stops as soon as
    the expected number of lines has been collected.
    """
    meta: list[str] = []
    expected = stats.meta_count

    monitor = LineMonitor("read meta", progress, cancel, total=expected)
    with open_vcf(source) as handle:
        for line_number, line in iter_lines(handle):
            if len(meta) == expected:
                break
            monitor.check()
            if not line.strip():
                continue
            if not line.startswith(META_MARKER):
                raise FormatError(
                    f"expected {expected} meta lines, found only {len(meta)}",
                    line_number=line_number,
                    line=line,
                )
            meta.append(line.rstrip("\r\n"))
            monitor.tick()

    if len(meta) < expected:
        raise FormatError(
            "file ended before all meta lines were read", expected=expected, actual=len(meta)
        )

    monitor.done()
    logger.debug("Read %d meta lines", len(meta))
    return meta
