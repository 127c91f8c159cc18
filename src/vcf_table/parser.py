"""VCF body parsing into a typed fixed-column table and a genotype matrix."""

import logging
import re
from pathlib import Path

from .config import ReaderConfig
from .errors import FormatError
from .hooks import CancellationToken, LineMonitor, LoggingProgress, ProgressObserver
from .meta import read_meta
from .models import FileStats, VCFData
from .scanner import HEADER_MARKER, META_MARKER, VCFSource, iter_lines, open_vcf, scan_file
from .table import (
    FIXED_COLUMNS,
    N_FIXED,
    BufferStrategy,
    ColumnarBuilder,
    GenotypeMatrix,
    RowBuilder,
    Table,
)
from .tokenizer import split_fields

logger = logging.getLogger(__name__)

NA_TEXT = "."

_INTEGER_RE = re.compile(r"-?[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?(?:inf|nan)", re.IGNORECASE
)


def coerce_field(value: str, kind: str, column: str, line_number: int, line: str):
    """Convert one fixed-column field, mapping ``.`` to NA (``None``)."""
    if value == NA_TEXT:
        return None
    if kind == "integer":
        if not _INTEGER_RE.fullmatch(value):
            raise FormatError(
                f"non-integer {column} value {value!r}", line_number=line_number, line=line
            )
        return int(value)
    if kind == "float":
        if not _FLOAT_RE.fullmatch(value):
            raise FormatError(
                f"non-numeric {column} value {value!r}", line_number=line_number, line=line
            )
        return float(value)
    return value


def _parse_header(line: str, column_count: int | None, line_number: int) -> list[str]:
    actual = line.rstrip("\r\n").count("\t") + 1
    if column_count is None:
        column_count = actual
    elif actual != column_count:
        raise FormatError(
            "header column count differs from scan",
            line_number=line_number,
            line=line,
            expected=column_count,
            actual=actual,
        )
    if column_count < N_FIXED:
        raise FormatError(
            "header line has too few columns",
            line_number=line_number,
            line=line,
            expected=N_FIXED,
            actual=column_count,
        )
    names = split_fields(line, column_count, line_number)
    names[0] = names[0][len(HEADER_MARKER):]
    return names


def _parse(
    source: VCFSource,
    stats: FileStats | None,
    strategy: BufferStrategy,
    strict: bool,
    monitor: LineMonitor,
    meta: list[str] | None = None,
) -> tuple[Table, GenotypeMatrix, FileStats]:
    capacity = stats.variant_count if stats is not None else None
    column_count = stats.column_count if stats is not None else None

    builder: ColumnarBuilder | None = None
    genotypes: RowBuilder | None = None
    meta_seen = 0
    header_line = 0

    with open_vcf(source) as handle:
        for line_number, line in iter_lines(handle):
            monitor.check()

            if builder is None:
                if line.startswith(META_MARKER):
                    meta_seen += 1
                    if meta is not None:
                        meta.append(line.rstrip("\r\n"))
                elif line.startswith(HEADER_MARKER):
                    if stats is not None and meta_seen != stats.meta_count:
                        raise FormatError(
                            "meta line count differs from scan",
                            line_number=line_number,
                            expected=stats.meta_count,
                            actual=meta_seen,
                        )
                    names = _parse_header(line, column_count, line_number)
                    column_count = len(names)
                    header_line = meta_seen + 1
                    schema = [
                        (name, kind) for name, (_, kind) in zip(names, FIXED_COLUMNS, strict=False)
                    ]
                    builder = ColumnarBuilder(schema, strategy, capacity)
                    genotypes = RowBuilder(names[N_FIXED:], strategy, capacity)
                elif line.strip():
                    raise FormatError(
                        "variant record before header line", line_number=line_number, line=line
                    )
                monitor.tick()
                continue

            if not line.strip():
                monitor.tick()
                continue
            if line.startswith(HEADER_MARKER):
                raise FormatError(
                    "marker line after header line", line_number=line_number, line=line
                )
            if builder.full:
                raise FormatError(
                    "more variant rows than scanned",
                    line_number=line_number,
                    line=line,
                    expected=capacity,
                    actual=builder.n_rows + 1,
                )

            fields = split_fields(line, column_count, line_number, strict=strict)
            builder.append(
                [
                    coerce_field(value, kind, name, line_number, line)
                    for value, (name, kind) in zip(fields, builder.schema, strict=False)
                ]
            )
            genotypes.append(fields[N_FIXED:])
            monitor.tick()

    if builder is None:
        raise FormatError("no header line found")

    if stats is not None and builder.n_rows != stats.variant_count:
        raise FormatError(
            "variant row count differs from scan",
            expected=stats.variant_count,
            actual=builder.n_rows,
        )

    seen = FileStats(
        meta_count=meta_seen,
        header_line=header_line,
        variant_count=builder.n_rows,
        column_count=column_count,
    )
    return builder.build(), genotypes.build(), seen


def read_body(
    source: VCFSource,
    stats: FileStats | None = None,
    *,
    strategy: BufferStrategy = BufferStrategy.PRESIZED,
    strict: bool = True,
    progress: ProgressObserver | None = None,
    cancel: CancellationToken | None = None,
) -> tuple[Table, GenotypeMatrix]:
    """Parse the fixed columns and genotype region of a VCF file.

    Meta lines are skipped, the header supplies column names (leading ``#``
    stripped) and every record is split into ``column_count`` fields. In the
    first eight fields ``.`` becomes NA; POS is parsed as int and QUAL as
    float. Genotype fields are kept verbatim.

    Args:
        source: Path to a plain or gzipped VCF, or an open stream positioned
            at the start of the file.
        stats: Counts from :func:`scan_file`. Required for
            ``BufferStrategy.PRESIZED``; optional for ``GROWABLE``, where
            they are still checked when given.
        strategy: Buffer allocation strategy.
        strict: Reject records with surplus tabs instead of absorbing them
            into the last field.
        progress: Optional observer receiving per-line progress.
        cancel: Optional token checked once per line.

    Returns:
        Tuple of (fixed-column table, genotype matrix).

    Raises:
        FormatError: On field-count mismatches, non-numeric POS/QUAL, marker
            lines in the body, or a row count that differs from ``stats``.
        CancellationError: If ``cancel`` is triggered mid-pass.
    """
    if strategy is BufferStrategy.PRESIZED and stats is None:
        raise ValueError("PRESIZED parsing requires FileStats from scan_file")

    total = stats.total_lines if stats is not None else None
    monitor = LineMonitor("read body", progress, cancel, total=total)
    fix, gt, _ = _parse(source, stats, strategy, strict, monitor)
    monitor.done()

    logger.info("Parsed %d variants with %d samples", fix.n_rows, gt.n_cols)
    return fix, gt


def read_vcf(
    path: Path | str,
    *,
    config: ReaderConfig | None = None,
    progress: ProgressObserver | None = None,
    cancel: CancellationToken | None = None,
) -> VCFData:
    """Read a whole VCF file: counts, meta lines, fixed columns and genotypes.

    With ``BufferStrategy.PRESIZED`` the file is scanned first and then
    re-opened for the meta and body passes; with ``GROWABLE`` everything is
    collected in a single pass.
    """
    config = config or ReaderConfig()
    progress = progress or LoggingProgress(config.progress_interval, level=logging.DEBUG)

    if config.strategy is BufferStrategy.PRESIZED:
        stats = scan_file(path, progress=progress, cancel=cancel)
        meta = read_meta(path, stats, progress=progress, cancel=cancel)
        fix, gt = read_body(
            path,
            stats,
            strategy=config.strategy,
            strict=config.strict,
            progress=progress,
            cancel=cancel,
        )
        return VCFData(stats=stats, fix=fix, gt=gt, meta=meta)

    collected: list[str] = []
    monitor = LineMonitor("read vcf", progress, cancel)
    fix, gt, stats = _parse(path, None, config.strategy, config.strict, monitor, meta=collected)
    monitor.done()

    logger.info(
        "Read %s in one pass: %d meta lines, %d variants, %d samples",
        Path(path).name,
        stats.meta_count,
        stats.variant_count,
        gt.n_cols,
    )
    return VCFData(stats=stats, fix=fix, gt=gt, meta=collected)
