"""Serialize fixed columns and genotypes back to VCF text.

The body writers open their target in append mode and never truncate it, so
callers can stream very large outputs by writing disjoint row ranges with
repeated calls. Every row is written with a single ``write`` call; a
cancelled or failed write leaves only complete lines behind.
"""

import gzip
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import IO, Any

from .config import DEFAULT_CHUNK_SIZE, MaskPolicy, WriterConfig
from .hooks import CancellationToken, LineMonitor, ProgressObserver
from .models import VCFData
from .table import FIXED_NAMES, GenotypeMatrix, Table

logger = logging.getLogger(__name__)

NA_TEXT = "."
_FIELD_BREAKS = ("\t", "\n", "\r")


def render_value(value: Any) -> str:
    """Render one materialized value in VCF text form."""
    if value is None:
        return NA_TEXT
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def format_record(fixed: Sequence[Any], genotypes: Sequence[str]) -> str:
    """Format one VCF body line, newline included.

    Raises:
        ValueError: If a value contains a tab or line break.
    """
    fields = [render_value(v) for v in fixed]
    fields.extend(genotypes)
    for i, text in enumerate(fields):
        if any(c in text for c in _FIELD_BREAKS):
            raise ValueError(f"Field {i + 1} value {text!r} contains a tab or line break")
    return "\t".join(fields) + "\n"


def _check_rows(
    fix: Table, gt: GenotypeMatrix, start: int, stop: int | None
) -> tuple[int, int]:
    if fix.n_rows != gt.n_rows:
        raise ValueError(
            f"Fixed table has {fix.n_rows} rows but genotype matrix has {gt.n_rows}"
        )
    missing = [name for name in FIXED_NAMES if name not in fix]
    if missing:
        raise ValueError(f"Fixed table is missing columns: {', '.join(missing)}")

    stop = fix.n_rows if stop is None else stop
    if not 0 <= start <= stop <= fix.n_rows:
        raise ValueError(f"Invalid row range [{start}, {stop}) for {fix.n_rows} rows")
    return start, stop


def _write_rows(
    handle: IO[str],
    fix: Table,
    gt: GenotypeMatrix,
    start: int,
    stop: int,
    mask: bool,
    policy: MaskPolicy,
    monitor: LineMonitor,
) -> int:
    columns = [fix[name] for name in FIXED_NAMES]
    filters = fix["FILTER"]
    written = 0

    for i in range(start, stop):
        monitor.check()
        if not (mask and policy.skips(filters[i])):
            handle.write(format_record([c[i] for c in columns], gt.row(i)))
            written += 1
        monitor.tick()

    return written


def _open_text(path: Path, compress: bool, mode: str) -> IO[str]:
    if compress:
        return gzip.open(path, mode + "t", encoding="utf-8", newline="\n")
    return open(path, mode, encoding="utf-8", newline="\n")


def _write_body(
    fix: Table,
    gt: GenotypeMatrix,
    path: Path | str,
    mask: bool,
    policy: MaskPolicy,
    start: int,
    stop: int | None,
    compress: bool,
    progress: ProgressObserver | None,
    cancel: CancellationToken | None,
) -> int:
    path = Path(path)
    start, stop = _check_rows(fix, gt, start, stop)

    monitor = LineMonitor("write body", progress, cancel, total=stop - start)
    with _open_text(path, compress, "a") as handle:
        written = _write_rows(handle, fix, gt, start, stop, mask, policy, monitor)
    monitor.done()

    logger.info(
        "Wrote %d of %d rows to %s%s",
        written,
        stop - start,
        path,
        " (gzip)" if compress else "",
    )
    return written


def write_vcf_body(
    fix: Table,
    gt: GenotypeMatrix,
    path: Path | str,
    mask: bool = False,
    *,
    policy: MaskPolicy = MaskPolicy.DROP_NON_PASS,
    start: int = 0,
    stop: int | None = None,
    progress: ProgressObserver | None = None,
    cancel: CancellationToken | None = None,
) -> int:
    """Append body rows ``[start, stop)`` to an uncompressed file.

    Args:
        fix: Table holding at least the eight fixed VCF columns.
        gt: Genotype matrix with the same number of rows.
        path: Output file; created if missing, appended to otherwise.
        mask: If True, drop rows whose FILTER value ``policy`` rejects.
        policy: Which FILTER values a masked write drops.
        start: First row to write.
        stop: One past the last row to write (default: all rows).
        progress: Optional observer receiving per-row progress.
        cancel: Optional token checked once per row.

    Returns:
        Number of rows written.
    """
    return _write_body(fix, gt, path, mask, policy, start, stop, False, progress, cancel)


def write_vcf_body_gz(
    fix: Table,
    gt: GenotypeMatrix,
    path: Path | str,
    mask: bool = False,
    *,
    policy: MaskPolicy = MaskPolicy.DROP_NON_PASS,
    start: int = 0,
    stop: int | None = None,
    progress: ProgressObserver | None = None,
    cancel: CancellationToken | None = None,
) -> int:
    """Append body rows to a gzip file, as a new gzip member per call.

    Same arguments and return value as :func:`write_vcf_body`.
    """
    return _write_body(fix, gt, path, mask, policy, start, stop, True, progress, cancel)


def format_header(columns: Sequence[str]) -> str:
    return "#" + "\t".join(columns) + "\n"


def write_vcf_header(
    meta: Sequence[str],
    columns: Sequence[str],
    path: Path | str,
    *,
    compress: bool = False,
) -> None:
    """Append meta lines and the ``#``-prefixed header line."""
    with _open_text(Path(path), compress, "a") as handle:
        for line in meta:
            handle.write(line.rstrip("\r\n") + "\n")
        handle.write(format_header(columns))


def write_vcf(
    data: VCFData,
    path: Path | str,
    *,
    config: WriterConfig | None = None,
    mask: bool | None = None,
    policy: MaskPolicy | None = None,
    chunk_size: int | None = None,
    compress: bool | None = None,
    progress: ProgressObserver | None = None,
    cancel: CancellationToken | None = None,
) -> int:
    """Write a complete VCF file, replacing any existing content.

    Rows are written ``chunk_size`` at a time with a flush after each chunk.
    Settings not passed explicitly come from ``config`` (default
    :class:`WriterConfig`). Compression defaults to the ``.gz`` suffix of
    ``path`` when neither the argument nor the config sets it.

    Returns:
        Number of body rows written.
    """
    config = config or WriterConfig()
    mask = config.mask if mask is None else mask
    policy = config.policy if policy is None else policy
    chunk_size = config.chunk_size if chunk_size is None else chunk_size
    compress = config.compress if compress is None else compress

    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    path = Path(path)
    if compress is None:
        compress = path.suffix == ".gz"

    start, stop = _check_rows(data.fix, data.gt, 0, None)
    monitor = LineMonitor("write vcf", progress, cancel, total=stop)
    written = 0

    with _open_text(path, compress, "w") as handle:
        for line in data.meta:
            handle.write(line.rstrip("\r\n") + "\n")
        handle.write(format_header(data.header_columns))

        for chunk_start in range(start, stop, chunk_size):
            chunk_stop = min(chunk_start + chunk_size, stop)
            written += _write_rows(
                handle, data.fix, data.gt, chunk_start, chunk_stop, mask, policy, monitor
            )
            handle.flush()
            logger.debug("Flushed rows %d-%d to %s", chunk_start, chunk_stop, path)

    monitor.done()
    logger.info("Wrote VCF with %d meta lines and %d rows to %s", len(data.meta), written, path)
    return written
