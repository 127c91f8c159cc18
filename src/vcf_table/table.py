"""Columnar table model with NA semantics.

A :class:`Table` is an ordered mapping of column name to :class:`Column`
where every column has the same number of rows. ``None`` is the NA value in
every column kind. Tables and genotype matrices are immutable once built, so
any number of readers may share one; only a :class:`ColumnarBuilder` ever
fills the underlying buffers.
"""

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

COLUMN_KINDS = ("string", "integer", "float", "boolean")

FIXED_COLUMNS: tuple[tuple[str, str], ...] = (
    ("CHROM", "string"),
    ("POS", "integer"),
    ("ID", "string"),
    ("REF", "string"),
    ("ALT", "string"),
    ("QUAL", "float"),
    ("FILTER", "string"),
    ("INFO", "string"),
)
FIXED_NAMES = tuple(name for name, _ in FIXED_COLUMNS)
N_FIXED = len(FIXED_COLUMNS)


class BufferStrategy(Enum):
    """How output buffers are allocated while parsing."""

    PRESIZED = "presized"
    GROWABLE = "growable"

    @classmethod
    def from_string(cls, value: str) -> "BufferStrategy":
        value_lower = value.lower()
        for strategy in cls:
            if strategy.value == value_lower:
                return strategy
        raise ValueError(
            f"Unknown buffer strategy: '{value}'. "
            f"Valid values: {', '.join(s.value for s in cls)}"
        )


@dataclass(frozen=True)
class Column:
    """A named, typed column vector."""

    name: str
    kind: str
    values: tuple

    def __post_init__(self) -> None:
        if self.kind not in COLUMN_KINDS:
            raise ValueError(f"Unknown column kind '{self.kind}' for column {self.name}")
        if not isinstance(self.values, tuple):
            object.__setattr__(self, "values", tuple(self.values))

    def __len__(self) -> int:
        return len(self.values)

    def __getitem__(self, index: int) -> Any:
        return self.values[index]

    def __iter__(self) -> Iterator[Any]:
        return iter(self.values)

    def na_count(self) -> int:
        return sum(1 for v in self.values if v is None)


def infer_kind(values: Sequence[Any]) -> str:
    """Infer a column kind from its non-NA values."""
    kinds = set()
    for value in values:
        if value is None:
            continue
        if isinstance(value, bool):
            kinds.add("boolean")
        elif isinstance(value, int):
            kinds.add("integer")
        elif isinstance(value, float):
            kinds.add("float")
        else:
            kinds.add("string")

    if not kinds:
        return "string"
    if len(kinds) == 1:
        return kinds.pop()
    if kinds == {"integer", "float"}:
        return "float"
    return "string"


class Table:
    """Ordered column mapping with a shared row count."""

    def __init__(self, columns: Iterable[Column]):
        mapping: dict[str, Column] = {}
        n_rows: int | None = None

        for column in columns:
            if column.name in mapping:
                raise ValueError(f"Duplicate column name: {column.name}")
            if n_rows is None:
                n_rows = len(column)
            elif len(column) != n_rows:
                raise ValueError(
                    f"Column {column.name} has {len(column)} rows, expected {n_rows}"
                )
            mapping[column.name] = column

        self._columns = MappingProxyType(mapping)
        self._n_rows = n_rows or 0

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Sequence[Any]],
        kinds: Mapping[str, str] | None = None,
    ) -> "Table":
        """Build a table from plain sequences, inferring kinds not given."""
        kinds = kinds or {}
        return cls(
            Column(name, kinds.get(name) or infer_kind(values), tuple(values))
            for name, values in data.items()
        )

    @property
    def n_rows(self) -> int:
        return self._n_rows

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(self._columns)

    @property
    def columns(self) -> tuple[Column, ...]:
        return tuple(self._columns.values())

    def __len__(self) -> int:
        return self._n_rows

    def __contains__(self, name: object) -> bool:
        return name in self._columns

    def __getitem__(self, name: str) -> Column:
        try:
            return self._columns[name]
        except KeyError:
            raise KeyError(
                f"No column named '{name}'. Columns: {', '.join(self._columns)}"
            ) from None

    def __repr__(self) -> str:
        return f"Table({self._n_rows} rows x {len(self._columns)} columns: {', '.join(self._columns)})"

    def row(self, index: int) -> dict[str, Any]:
        return {name: column[index] for name, column in self._columns.items()}

    def with_columns(self, *columns: Column) -> "Table":
        """Return a new table with columns replaced or appended by name."""
        merged = dict(self._columns)
        for column in columns:
            merged[column.name] = column
        return Table(merged.values())

    def slice(self, start: int, stop: int) -> "Table":
        return Table(
            Column(c.name, c.kind, c.values[start:stop]) for c in self._columns.values()
        )


class GenotypeMatrix:
    """Row-major matrix of raw per-sample strings, one row per variant."""

    def __init__(self, samples: Sequence[str], rows: Iterable[Sequence[str]]):
        self.samples = tuple(samples)
        self.rows = tuple(tuple(r) for r in rows)
        width = len(self.samples)
        for i, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(f"Genotype row {i} has {len(row)} values, expected {width}")

    @property
    def n_rows(self) -> int:
        return len(self.rows)

    @property
    def n_cols(self) -> int:
        return len(self.samples)

    def __len__(self) -> int:
        return len(self.rows)

    def __repr__(self) -> str:
        return f"GenotypeMatrix({self.n_rows} rows x {self.n_cols} samples)"

    def row(self, index: int) -> tuple[str, ...]:
        return self.rows[index]

    def column(self, sample: str) -> tuple[str, ...]:
        try:
            j = self.samples.index(sample)
        except ValueError:
            raise KeyError(f"No sample named '{sample}'") from None
        return tuple(row[j] for row in self.rows)

    def slice(self, start: int, stop: int) -> "GenotypeMatrix":
        return GenotypeMatrix(self.samples, self.rows[start:stop])


class _Buffer:
    """Append-only buffer, either pre-sized or growable."""

    def __init__(self, strategy: BufferStrategy, capacity: int | None = None):
        self.strategy = strategy
        if strategy is BufferStrategy.PRESIZED:
            if capacity is None or capacity < 0:
                raise ValueError("PRESIZED buffers require a non-negative capacity")
            self._data: list[Any] = [None] * capacity
        else:
            self._data = []
        self.capacity = capacity
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def append(self, value: Any) -> None:
        if self.strategy is BufferStrategy.PRESIZED:
            if self._size >= len(self._data):
                raise OverflowError(f"buffer capacity {len(self._data)} exceeded")
            self._data[self._size] = value
        else:
            self._data.append(value)
        self._size += 1

    def freeze(self) -> tuple:
        if self.strategy is BufferStrategy.PRESIZED and self._size != len(self._data):
            raise ValueError(f"buffer holds {self._size} of {len(self._data)} pre-sized rows")
        return tuple(self._data)


class ColumnarBuilder:
    """Accumulate rows into typed column buffers, then build a :class:`Table`.

    With ``BufferStrategy.PRESIZED`` every buffer is allocated up front from
    a prior counting pass and must be filled exactly; with
    ``BufferStrategy.GROWABLE`` buffers grow as rows arrive.
    """

    def __init__(
        self,
        schema: Sequence[tuple[str, str]],
        strategy: BufferStrategy = BufferStrategy.GROWABLE,
        capacity: int | None = None,
    ):
        self.schema = tuple(schema)
        self.strategy = strategy
        self.capacity = capacity
        self._buffers = [_Buffer(strategy, capacity) for _ in self.schema]

    @property
    def n_rows(self) -> int:
        return len(self._buffers[0]) if self._buffers else 0

    @property
    def full(self) -> bool:
        return self.strategy is BufferStrategy.PRESIZED and self.n_rows >= (self.capacity or 0)

    def append(self, row: Sequence[Any]) -> None:
        if len(row) != len(self.schema):
            raise ValueError(f"row has {len(row)} values, expected {len(self.schema)}")
        for buffer, value in zip(self._buffers, row, strict=True):
            buffer.append(value)

    def build(self) -> Table:
        return Table(
            Column(name, kind, buffer.freeze())
            for (name, kind), buffer in zip(self.schema, self._buffers, strict=True)
        )


class RowBuilder:
    """Accumulate genotype rows with the same allocation strategy as the columns."""

    def __init__(
        self,
        samples: Sequence[str],
        strategy: BufferStrategy = BufferStrategy.GROWABLE,
        capacity: int | None = None,
    ):
        self.samples = tuple(samples)
        self._buffer = _Buffer(strategy, capacity)

    def __len__(self) -> int:
        return len(self._buffer)

    def append(self, values: Sequence[str]) -> None:
        self._buffer.append(tuple(values))

    def build(self) -> GenotypeMatrix:
        return GenotypeMatrix(self.samples, self._buffer.freeze())
