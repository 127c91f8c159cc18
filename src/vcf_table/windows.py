"""Assign variants to genomic windows and rank their scores within each window.

Window ``i`` covers positions in ``(ends[i-1], ends[i]]``; window 0 covers
everything up to ``ends[0]``. Within a window the highest score gets rank 1.
"""

import logging
import math
from collections.abc import Sequence
from typing import Any

from .errors import RangeError
from .table import Column, Table

logger = logging.getLogger(__name__)


def _check_ends(ends: Sequence[int]) -> None:
    if len(ends) == 0:
        raise ValueError("ends must contain at least one window boundary")
    for i in range(1, len(ends)):
        if ends[i] <= ends[i - 1]:
            raise ValueError(
                f"ends must be strictly ascending: ends[{i - 1}]={ends[i - 1]}, ends[{i}]={ends[i]}"
            )


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, float) and math.isnan(value)


def assign_windows(positions: Sequence[int | None], ends: Sequence[int]) -> list[int]:
    """Return the window number of every position in a single forward pass.

    The window cursor only ever advances, so positions must be
    non-decreasing.

    Raises:
        ValueError: If ``ends`` is empty or not strictly ascending.
        RangeError: If a position is NA, lies beyond the last boundary, or
            lies at or below the previous window's boundary (unsorted input).
    """
    _check_ends(ends)
    last = len(ends) - 1
    windows = [0] * len(positions)
    w = 0

    for i, pos in enumerate(positions):
        if _is_missing(pos):
            raise RangeError(f"row {i} has no position", row=i)
        while pos > ends[w]:
            if w == last:
                raise RangeError(
                    f"position {pos} at row {i} is beyond the last window end {ends[last]}",
                    row=i,
                    position=pos,
                    last_end=ends[last],
                )
            w += 1
        if w > 0 and pos <= ends[w - 1]:
            raise RangeError(
                f"position {pos} at row {i} falls before window {w}; positions must be sorted",
                row=i,
                position=pos,
                last_end=ends[last],
            )
        windows[i] = w

    return windows


def rank_within_windows(
    windows: Sequence[int],
    scores: Sequence[float | None],
    excluded: Sequence[bool | None] | None = None,
) -> list[int | None]:
    """Rank scores in descending order within each window.

    Ties keep their original row order. Excluded rows and rows with a
    missing score get NA (``None``) and do not occupy a rank.
    """
    if len(scores) != len(windows):
        raise ValueError(f"Got {len(scores)} scores for {len(windows)} rows")
    if excluded is not None and len(excluded) != len(windows):
        raise ValueError(f"Got {len(excluded)} exclusion flags for {len(windows)} rows")

    groups: dict[int, list[int]] = {}
    for i, w in enumerate(windows):
        if excluded is not None and excluded[i]:
            continue
        if _is_missing(scores[i]):
            continue
        groups.setdefault(w, []).append(i)

    ranks: list[int | None] = [None] * len(windows)
    for members in groups.values():
        # sorted() stays stable with reverse=True
        ordered = sorted(members, key=lambda i: scores[i], reverse=True)
        for rank, i in enumerate(ordered, start=1):
            ranks[i] = rank

    return ranks


def rank_variants(
    table: Table,
    ends: Sequence[int],
    scores: Sequence[float | None],
    *,
    mask_column: str | None = "mask",
    position_column: str = "POS",
) -> Table:
    """Add ``window_number`` and ``window_rank`` columns to a variant table.

    Args:
        table: Variant table with non-decreasing positions.
        ends: Strictly ascending window end positions.
        scores: One score per row, e.g. GQ or any composite score.
        mask_column: Boolean column marking excluded rows, or None to rank
            every row.
        position_column: Column holding the positions.

    Returns:
        A new table with the two extra columns; the row count is unchanged.
    """
    scores = list(scores)
    if len(scores) != table.n_rows:
        raise ValueError(f"Got {len(scores)} scores for a table with {table.n_rows} rows")

    excluded = table[mask_column].values if mask_column is not None else None
    windows = assign_windows(table[position_column].values, ends)
    ranks = rank_within_windows(windows, scores, excluded)

    logger.debug(
        "Ranked %d variants across %d windows",
        table.n_rows,
        len(set(windows)),
    )
    return table.with_columns(
        Column("window_number", "integer", tuple(windows)),
        Column("window_rank", "integer", tuple(ranks)),
    )
