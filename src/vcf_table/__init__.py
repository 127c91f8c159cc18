"""vcf-table: streaming VCF reader/writer with typed columns and window ranking."""

__version__ = "0.1.0"

from .config import ReaderConfig, VCFTableConfig, WriterConfig, load_config
from .errors import CancellationError, FormatError, RangeError, VCFTableError
from .hooks import CancellationToken, LoggingProgress, NullProgress, RichProgress
from .meta import read_meta
from .models import FileStats, VCFData
from .parser import read_body, read_vcf
from .scanner import count_lines, open_vcf, scan_file
from .table import BufferStrategy, Column, ColumnarBuilder, GenotypeMatrix, Table
from .tokenizer import split_fields
from .windows import assign_windows, rank_variants, rank_within_windows
from .writer import (
    MaskPolicy,
    format_record,
    write_vcf,
    write_vcf_body,
    write_vcf_body_gz,
    write_vcf_header,
)

__all__ = [
    "BufferStrategy",
    "CancellationError",
    "CancellationToken",
    "Column",
    "ColumnarBuilder",
    "FileStats",
    "FormatError",
    "GenotypeMatrix",
    "LoggingProgress",
    "MaskPolicy",
    "NullProgress",
    "RangeError",
    "ReaderConfig",
    "RichProgress",
    "Table",
    "VCFData",
    "VCFTableConfig",
    "VCFTableError",
    "WriterConfig",
    "__version__",
    "assign_windows",
    "count_lines",
    "format_record",
    "load_config",
    "open_vcf",
    "rank_variants",
    "rank_within_windows",
    "read_body",
    "read_meta",
    "read_vcf",
    "scan_file",
    "split_fields",
    "write_vcf",
    "write_vcf_body",
    "write_vcf_body_gz",
    "write_vcf_header",
]
