# SPDX-License-Identifier: MIT
"""Result row shapes shared by every driver adapter."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any, Union

__all__ = ["FetchMode", "Row", "shape_row"]

Row = Union[dict[Any, Any], tuple[Any, ...]]


class FetchMode(str, Enum):
    """Shape in which result rows are returned."""

    DEFAULT = "default"
    ASSOC = "assoc"
    NUM = "num"
    BOTH = "both"


def shape_row(columns: Sequence[str], values: Sequence[Any], mode: FetchMode) -> Row:
    """Shape one raw row according to *mode*.

    ``DEFAULT`` must be resolved by the caller before rows reach the driver.
    With duplicated column names the last column wins in ``ASSOC`` and ``BOTH``.
    """

    if mode is FetchMode.NUM:
        return tuple(values)
    if mode is FetchMode.ASSOC:
        return dict(zip(columns, values))
    if mode is FetchMode.BOTH:
        row: dict[Any, Any] = dict(zip(columns, values))
        row.update(enumerate(values))
        return row
    raise ValueError(f"fetch mode {mode!r} must be resolved before shaping rows")
