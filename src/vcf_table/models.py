"""Data models for parsed VCF files."""

from dataclasses import dataclass, field

from .table import N_FIXED, GenotypeMatrix, Table


@dataclass(frozen=True)
class FileStats:
    """Line counts collected by a scanning pass.

    ``header_line`` is the position of the header among the non-blank lines
    (``meta_count + 1`` for a well-formed file).
    """

    meta_count: int
    header_line: int
    variant_count: int
    column_count: int

    @property
    def sample_count(self) -> int:
        return self.column_count - N_FIXED

    @property
    def total_lines(self) -> int:
        return self.meta_count + 1 + self.variant_count

    def as_dict(self) -> dict[str, int]:
        return {
            "meta": self.meta_count,
            "header": self.header_line,
            "variants": self.variant_count,
            "columns": self.column_count,
        }


@dataclass
class VCFData:
    """A fully read VCF file: counts, meta lines, fixed columns and genotypes."""

    stats: FileStats
    fix: Table
    gt: GenotypeMatrix
    meta: list[str] = field(default_factory=list)

    @property
    def samples(self) -> tuple[str, ...]:
        return self.gt.samples

    @property
    def header_columns(self) -> tuple[str, ...]:
        return self.fix.column_names[:N_FIXED] + self.gt.samples

    def __len__(self) -> int:
        return self.fix.n_rows
